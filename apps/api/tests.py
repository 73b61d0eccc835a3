from datetime import timedelta
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.cache import cache
from django.utils import timezone
from rest_framework.test import APITestCase
from rest_framework_simplejwt.tokens import RefreshToken

from apps.sync.models import Attendance, Member, PotentialCustomer, Service, Transaction


class DashboardApiTests(APITestCase):
    def setUp(self):
        cache.clear()
        user = get_user_model().objects.create_user(username="admin", password="pass1234")
        token = RefreshToken.for_user(user)
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {token.access_token}")

        now = timezone.now()
        self.service = Service.objects.create(
            local_id=1, name="Gym", period=30, price=Decimal("500"), category="gym", usage_type="unlimited", status="active"
        )
        self.active = self._member(1, "Ali Valiyev", "active")
        self.frozen = self._member(2, "Bob Frozen", "frozen")
        Attendance.objects.create(local_id=1, member=self.active, member_local_id=1, date=now)
        Attendance.objects.create(local_id=2, member=self.frozen, member_local_id=2, date=now - timedelta(days=40))
        Transaction.objects.create(
            local_id=1,
            transaction_type="income",
            amount=Decimal("500"),
            transaction_date=now,
            description="Subscription",
            member=self.active,
            member_local_id=1,
        )
        Transaction.objects.create(
            local_id=2,
            transaction_type="expense",
            amount=Decimal("120.50"),
            transaction_date=now,
            description="Supplies",
        )

    def _member(self, local_id, name, status):
        now = timezone.now()
        return Member.objects.create(
            local_id=local_id,
            full_name=name,
            phone_number=f"+1555{local_id:04d}",
            first_registered_at=now,
            subscription_start_date=now,
            subscription_end_date=now + timedelta(days=30),
            subscription_status="active",
            status=status,
            service=self.service,
            service_local_id=self.service.local_id,
        )

    def test_requires_authentication(self):
        self.client.credentials()
        resp = self.client.get("/api/members/")
        self.assertEqual(resp.status_code, 401)

    def test_members_list_and_filters(self):
        resp = self.client.get("/api/members/")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(len(resp.data), 2)
        self.assertEqual(resp.data[0]["service_name"], "Gym")

        resp = self.client.get("/api/members/", {"status": "frozen"})
        self.assertEqual([row["local_id"] for row in resp.data], [2])

        resp = self.client.get("/api/members/", {"search": "ali"})
        self.assertEqual([row["local_id"] for row in resp.data], [1])

    def test_attendance_date_range_and_member_filter(self):
        today = timezone.localdate().isoformat()
        resp = self.client.get("/api/attendance/", {"from": today})
        self.assertEqual([row["local_id"] for row in resp.data], [1])

        resp = self.client.get("/api/attendance/", {"member": "2"})
        self.assertEqual([row["member_name"] for row in resp.data], ["Bob Frozen"])

    def test_transactions_filter_by_type(self):
        resp = self.client.get("/api/transactions/", {"type": "expense"})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual([row["local_id"] for row in resp.data], [2])

    def test_dashboard_stats(self):
        resp = self.client.get("/api/dashboard/stats/")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data["members_total"], 2)
        self.assertEqual(resp.data["members_by_status"], {"active": 1, "frozen": 1})
        self.assertEqual(resp.data["attendance_today"], 1)
        self.assertEqual(Decimal(resp.data["income_this_month"]), Decimal("500"))
        self.assertEqual(Decimal(resp.data["expense_this_month"]), Decimal("120.50"))

    def test_dashboard_stats_are_cached(self):
        first = self.client.get("/api/dashboard/stats/")
        self._member(3, "Late Joiner", "active")
        second = self.client.get("/api/dashboard/stats/")
        self.assertEqual(first.data["members_total"], second.data["members_total"])

    def test_revenue_breakdown(self):
        resp = self.client.get("/api/dashboard/revenue/")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(Decimal(resp.data["this_month"]), Decimal("500"))
        self.assertEqual(Decimal(resp.data["last_7_days"][0]["revenue"]), Decimal("500"))
        self.assertEqual(len(resp.data["last_7_days"]), 7)
        self.assertEqual(len(resp.data["by_month"]), 6)
        self.assertEqual(resp.data["by_month"][0]["month"], timezone.localtime().strftime("%Y-%m"))
        self.assertEqual(resp.data["by_category"][0]["category"], "Uncategorized")

    def test_attendance_trends(self):
        resp = self.client.get("/api/dashboard/attendance-trends/")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data["today"], 1)
        self.assertEqual(len(resp.data["last_30_days"]), 30)
        self.assertEqual(
            resp.data["last_30_days"][0], {"date": timezone.localdate().isoformat(), "count": 1}
        )
        self.assertEqual([row["day_of_week"] for row in resp.data["by_day_of_week"]][0], "Sunday")
        self.assertEqual(len(resp.data["by_day_of_week"]), 7)

    def test_member_growth(self):
        resp = self.client.get("/api/dashboard/member-growth/")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data["total"], 2)
        self.assertEqual(resp.data["new_this_month"], 2)
        self.assertEqual(resp.data["new_last_month"], 0)
        self.assertEqual(resp.data["month_over_month_growth"], 0)
        self.assertEqual(resp.data["by_month"][0]["total_at_end_of_month"], 2)
        self.assertEqual(resp.data["by_month"][1]["total_at_end_of_month"], 0)


class PotentialCustomerApiTests(APITestCase):
    def setUp(self):
        self.service = Service.objects.create(
            local_id=1, name="Gym", period=30, price=Decimal("500"), category="gym", usage_type="unlimited", status="active"
        )

    def _login(self):
        user = get_user_model().objects.create_user(username="admin", password="pass1234")
        token = RefreshToken.for_user(user)
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {token.access_token}")

    def test_public_register_without_account(self):
        resp = self.client.post(
            "/api/public/register/",
            {
                "full_name": "New Lead",
                "phone_number": "+998901234567",
                "email": "",
                "service": self.service.pk,
                "status": "converted",
            },
            format="json",
        )
        self.assertEqual(resp.status_code, 201)
        self.assertEqual(resp.data["status"], "pending")
        self.assertEqual(resp.data["service_name"], "Gym")
        lead = PotentialCustomer.objects.get()
        self.assertIsNone(lead.email)
        self.assertEqual(lead.service, self.service)

    def test_public_register_requires_name_and_phone(self):
        resp = self.client.post("/api/public/register/", {"full_name": "No Phone"}, format="json")
        self.assertEqual(resp.status_code, 400)
        self.assertIn("phone_number", resp.data)
        self.assertEqual(PotentialCustomer.objects.count(), 0)

    def test_admin_list_requires_jwt(self):
        resp = self.client.get("/api/admin/potential-customers/")
        self.assertEqual(resp.status_code, 401)

    def test_admin_list_filters_by_status(self):
        PotentialCustomer.objects.create(full_name="Waiting", phone_number="+1")
        PotentialCustomer.objects.create(full_name="Skipped", phone_number="+2", status=PotentialCustomer.STATUS_IGNORED)
        self._login()

        resp = self.client.get("/api/admin/potential-customers/")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(len(resp.data), 2)

        resp = self.client.get("/api/admin/potential-customers/", {"status": "pending"})
        self.assertEqual([row["full_name"] for row in resp.data], ["Waiting"])
