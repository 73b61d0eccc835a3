from datetime import datetime, time, timedelta

from django.conf import settings
from django.core.cache import cache
from django.db.models import Count, Q, Sum
from django.utils import timezone
from django.utils.dateparse import parse_date
from rest_framework import generics, viewsets
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response

from apps.sync.models import (
    Attendance,
    HealthMetric,
    Member,
    PotentialCustomer,
    Service,
    Staff,
    StaffAttendance,
    Transaction,
)
from .serializers import (
    AttendanceSerializer,
    HealthMetricSerializer,
    MemberSerializer,
    PotentialCustomerSerializer,
    ServiceSerializer,
    StaffAttendanceSerializer,
    StaffSerializer,
    TransactionSerializer,
)

STATS_CACHE_KEY = "dashboard:stats"
DAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]

def _day_bounds(raw_date, end=False):
    day = parse_date(raw_date or "")
    if day is None:
        return None
    moment = datetime.combine(day, time.max if end else time.min)
    return timezone.make_aware(moment, timezone.get_current_timezone())

class DateRangeMixin:
    """Filter on `date_field` with ?from=YYYY-MM-DD&to=YYYY-MM-DD."""

    date_field = ""

    def get_queryset(self):
        queryset = super().get_queryset()
        start = _day_bounds(self.request.query_params.get("from"))
        end = _day_bounds(self.request.query_params.get("to"), end=True)
        if start:
            queryset = queryset.filter(**{f"{self.date_field}__gte": start})
        if end:
            queryset = queryset.filter(**{f"{self.date_field}__lte": end})
        return queryset

class MemberLocalIdMixin:
    def get_queryset(self):
        queryset = super().get_queryset()
        member_local_id = self.request.query_params.get("member")
        if member_local_id and member_local_id.isdigit():
            queryset = queryset.filter(member_local_id=int(member_local_id))
        return queryset

class ServiceViewSet(viewsets.ReadOnlyModelViewSet):
    queryset = Service.objects.all()
    serializer_class = ServiceSerializer
    permission_classes = [IsAuthenticated]

class MemberViewSet(viewsets.ReadOnlyModelViewSet):
    queryset = Member.objects.select_related("service").all()
    serializer_class = MemberSerializer
    permission_classes = [IsAuthenticated]

    def get_queryset(self):
        queryset = super().get_queryset()
        status = self.request.query_params.get("status")
        search = (self.request.query_params.get("search") or "").strip()
        if status:
            queryset = queryset.filter(status=status)
        if search:
            queryset = queryset.filter(
                Q(full_name__icontains=search) | Q(phone_number__icontains=search) | Q(card_no=search)
            )
        return queryset

class AttendanceViewSet(MemberLocalIdMixin, DateRangeMixin, viewsets.ReadOnlyModelViewSet):
    queryset = Attendance.objects.select_related("member").all()
    serializer_class = AttendanceSerializer
    permission_classes = [IsAuthenticated]
    date_field = "date"

class TransactionViewSet(MemberLocalIdMixin, DateRangeMixin, viewsets.ReadOnlyModelViewSet):
    queryset = Transaction.objects.all()
    serializer_class = TransactionSerializer
    permission_classes = [IsAuthenticated]
    date_field = "transaction_date"

    def get_queryset(self):
        queryset = super().get_queryset()
        transaction_type = self.request.query_params.get("type")
        if transaction_type:
            queryset = queryset.filter(transaction_type=transaction_type)
        return queryset

class HealthMetricViewSet(MemberLocalIdMixin, DateRangeMixin, viewsets.ReadOnlyModelViewSet):
    queryset = HealthMetric.objects.all()
    serializer_class = HealthMetricSerializer
    permission_classes = [IsAuthenticated]
    date_field = "measured_at"

class StaffViewSet(viewsets.ReadOnlyModelViewSet):
    queryset = Staff.objects.all()
    serializer_class = StaffSerializer
    permission_classes = [IsAuthenticated]

class StaffAttendanceViewSet(DateRangeMixin, viewsets.ReadOnlyModelViewSet):
    queryset = StaffAttendance.objects.select_related("staff").all()
    serializer_class = StaffAttendanceSerializer
    permission_classes = [IsAuthenticated]
    date_field = "scanned_at"

class PotentialCustomerViewSet(viewsets.ReadOnlyModelViewSet):
    queryset = PotentialCustomer.objects.select_related("service").all()
    serializer_class = PotentialCustomerSerializer
    permission_classes = [IsAuthenticated]

    def get_queryset(self):
        queryset = super().get_queryset()
        status = self.request.query_params.get("status")
        if status:
            queryset = queryset.filter(status=status)
        return queryset

class PublicRegisterView(generics.CreateAPIView):
    """Registration form on the public site. No account needed."""

    queryset = PotentialCustomer.objects.all()
    serializer_class = PotentialCustomerSerializer
    authentication_classes = []
    permission_classes = [AllowAny]


def _month_start(moment, months_back=0):
    """First instant of the month `months_back` months before `moment`."""
    year, month = divmod(moment.year * 12 + moment.month - 1 - months_back, 12)
    return moment.replace(year=year, month=month + 1, day=1, hour=0, minute=0, second=0, microsecond=0)


def _growth(current, previous):
    if not previous:
        return 0
    return round(float(current - previous) / float(previous) * 100, 2)


def _paid_income_between(start, end=None):
    queryset = Transaction.objects.filter(
        transaction_type="income", payment_status="paid", transaction_date__gte=start
    )
    if end is not None:
        queryset = queryset.filter(transaction_date__lt=end)
    return queryset.aggregate(total=Sum("amount"))["total"] or 0


def _build_stats():
    now = timezone.localtime()
    today_start = now.replace(hour=0, minute=0, second=0, microsecond=0)
    month_start = today_start.replace(day=1)

    members_by_status = dict(
        Member.objects.values_list("status").annotate(total=Count("id")).order_by()
    )
    month_totals = (
        Transaction.objects.filter(transaction_date__gte=month_start)
        .values("transaction_type")
        .annotate(total=Sum("amount"))
        .order_by()
    )
    totals = {row["transaction_type"]: row["total"] for row in month_totals}
    return {
        "members_total": sum(members_by_status.values()),
        "members_by_status": members_by_status,
        "attendance_today": Attendance.objects.filter(
            date__gte=today_start, date__lt=today_start + timedelta(days=1)
        ).count(),
        "income_this_month": str(totals.get("income") or 0),
        "expense_this_month": str(totals.get("expense") or 0),
        "generated_at": now.isoformat(),
    }


def _build_revenue():
    now = timezone.localtime()
    today_start = now.replace(hour=0, minute=0, second=0, microsecond=0)
    month_start = _month_start(now)
    last_month_start = _month_start(now, 1)

    this_month = _paid_income_between(month_start)
    last_month = _paid_income_between(last_month_start, month_start)

    last_7_days = []
    for offset in range(7):
        day = today_start - timedelta(days=offset)
        last_7_days.append(
            {
                "date": day.date().isoformat(),
                "revenue": str(_paid_income_between(day, day + timedelta(days=1))),
            }
        )

    by_month = []
    for offset in range(6):
        start = _month_start(now, offset)
        end = _month_start(now, offset - 1)
        by_month.append({"month": start.strftime("%Y-%m"), "revenue": str(_paid_income_between(start, end))})

    by_category = (
        Transaction.objects.filter(
            transaction_type="income", payment_status="paid", transaction_date__gte=month_start
        )
        .values("service__category")
        .annotate(revenue=Sum("amount"))
        .order_by("service__category")
    )
    return {
        "this_month": str(this_month),
        "last_month": str(last_month),
        "month_over_month_growth": _growth(this_month, last_month),
        "this_year": str(_paid_income_between(month_start.replace(month=1))),
        "by_month": by_month,
        "last_7_days": last_7_days,
        "by_category": [
            {"category": row["service__category"] or "Uncategorized", "revenue": str(row["revenue"])}
            for row in by_category
        ],
    }


def _build_attendance_trends():
    now = timezone.localtime()
    today = now.date()
    today_start = now.replace(hour=0, minute=0, second=0, microsecond=0)
    # Weeks start on Sunday.
    week_start = today_start - timedelta(days=(today.weekday() + 1) % 7)
    window_start = today_start - timedelta(days=29)

    per_day = {window_start.date() + timedelta(days=offset): 0 for offset in range(30)}
    for moment in Attendance.objects.filter(date__gte=window_start).values_list("date", flat=True):
        day = timezone.localtime(moment).date()
        if day in per_day:
            per_day[day] += 1

    weekday_counts = {name: [] for name in DAY_NAMES}
    for day, count in per_day.items():
        weekday_counts[DAY_NAMES[(day.weekday() + 1) % 7]].append(count)

    return {
        "today": per_day[today],
        "this_week": Attendance.objects.filter(date__gte=week_start).count(),
        "this_month": Attendance.objects.filter(date__gte=_month_start(now)).count(),
        "average_daily": round(sum(per_day.values()) / 30, 1),
        "last_30_days": [
            {"date": day.isoformat(), "count": count} for day, count in sorted(per_day.items(), reverse=True)
        ],
        "by_day_of_week": [
            {"day_of_week": name, "average": round(sum(counts) / len(counts), 1)}
            for name, counts in weekday_counts.items()
        ],
    }


def _build_member_growth():
    now = timezone.localtime()
    total = Member.objects.count()

    by_month = []
    running_total = total
    for offset in range(6):
        start = _month_start(now, offset)
        end = _month_start(now, offset - 1)
        new_members = Member.objects.filter(first_registered_at__gte=start, first_registered_at__lt=end).count()
        by_month.append(
            {"month": start.strftime("%Y-%m"), "new_members": new_members, "total_at_end_of_month": running_total}
        )
        running_total -= new_members

    new_this_month = by_month[0]["new_members"]
    new_last_month = by_month[1]["new_members"]
    return {
        "total": total,
        "new_this_month": new_this_month,
        "new_last_month": new_last_month,
        "month_over_month_growth": _growth(new_this_month, new_last_month),
        "by_month": by_month,
    }


def _cached(key, build):
    data = cache.get(key)
    if data is None:
        data = build()
        cache.set(key, data, timeout=settings.DASHBOARD_STATS_CACHE_SECONDS)
    return data


@api_view(["GET"])
@permission_classes([IsAuthenticated])
def dashboard_stats(request):
    return Response(_cached(STATS_CACHE_KEY, _build_stats))


@api_view(["GET"])
@permission_classes([IsAuthenticated])
def dashboard_revenue(request):
    return Response(_cached("dashboard:revenue", _build_revenue))


@api_view(["GET"])
@permission_classes([IsAuthenticated])
def dashboard_attendance_trends(request):
    return Response(_cached("dashboard:attendance-trends", _build_attendance_trends))


@api_view(["GET"])
@permission_classes([IsAuthenticated])
def dashboard_member_growth(request):
    return Response(_cached("dashboard:member-growth", _build_member_growth))
