from datetime import timedelta
from random import Random

from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone

from apps.sync.serializers import SyncPayloadSerializer
from apps.sync.services import run_sync

SERVICES = [
    ("Gym monthly", 30, "500.00", "gym", "unlimited"),
    ("Gym 12 visits", 30, "350.00", "gym", "limited"),
    ("Pool monthly", 30, "400.00", "pool", "unlimited"),
    ("Personal training", 30, "900.00", "training", "limited"),
]
STAFF = [("Trainer One", "trainer"), ("Reception Desk", "reception"), ("Night Manager", "manager")]


def _iso(value):
    return value.isoformat()


def build_demo_payload(member_count: int, seed: int = 42) -> dict:
    """Same arguments always produce the same payload, so re-seeding only refreshes timestamps."""
    rng = Random(seed)
    anchor = timezone.now().replace(hour=9, minute=0, second=0, microsecond=0)
    start = anchor - timedelta(days=10)

    services = [
        {
            "id": idx + 1,
            "name": name,
            "period": period,
            "price": price,
            "category": category,
            "maxUsageCount": 12 if usage_type == "limited" else None,
            "usageType": usage_type,
            "status": "active",
        }
        for idx, (name, period, price, category, usage_type) in enumerate(SERVICES)
    ]
    staff = [
        {"id": idx + 1, "fullName": name, "phoneNumber": f"+1555000{idx:04d}", "role": role}
        for idx, (name, role) in enumerate(STAFF)
    ]

    members, attendance, transactions, metrics = [], [], [], []
    for idx in range(member_count):
        local_id = idx + 1
        service = services[idx % len(services)]
        members.append(
            {
                "id": local_id,
                "fullName": f"Demo Member {local_id}",
                "phoneNumber": f"+1555100{local_id:04d}",
                "firstRegisteredAt": _iso(start - timedelta(days=30 * (idx % 6))),
                "subscriptionStartDate": _iso(start),
                "subscriptionEndDate": _iso(start + timedelta(days=service["period"])),
                "subscriptionUsedCount": rng.randint(0, 10),
                "subscriptionStatus": "active",
                "frozen": 0,
                "status": "active",
                "serviceId": service["id"],
                "gender": rng.choice(["male", "female"]),
            }
        )
        transactions.append(
            {
                "id": local_id,
                "transactionType": "income",
                "amount": service["price"],
                "transactionDate": _iso(start),
                "description": f"{service['name']} subscription",
                "memberId": local_id,
                "serviceId": service["id"],
                "paymentStatus": "paid",
                "subscriptionPeriodStart": _iso(start),
                "subscriptionPeriodEnd": _iso(start + timedelta(days=service["period"])),
            }
        )
        metrics.append(
            {
                "id": local_id,
                "memberId": local_id,
                "measuredAt": _iso(start),
                "weight": round(rng.uniform(55, 100), 1),
                "bmi": round(rng.uniform(19, 31), 1),
                "heartRate": rng.randint(55, 90),
            }
        )
        for day in range(3):
            attendance.append(
                {
                    "id": len(attendance) + 1,
                    "memberId": local_id,
                    "date": _iso(start + timedelta(days=day * 2, hours=rng.randint(0, 10))),
                }
            )

    staff_attendance = [
        {"id": idx + 1, "staffId": staff[idx % len(staff)]["id"], "scannedAt": _iso(anchor - timedelta(hours=idx))}
        for idx in range(len(staff) * 2)
    ]
    transactions.append(
        {
            "id": member_count + 1,
            "transactionType": "expense",
            "amount": "120.00",
            "transactionDate": _iso(start),
            "description": "Cleaning supplies",
            "vendor": "Demo Supplies Co",
            "paymentStatus": "paid",
        }
    )

    return {
        "timestamp": _iso(timezone.now()),
        "services": services,
        "members": members,
        "attendance": attendance,
        "transactions": transactions,
        "healthMetrics": metrics,
        "staff": staff,
        "staffAttendance": staff_attendance,
    }


class Command(BaseCommand):
    help = "Push a demo desktop payload through the sync engine (safe to run repeatedly)."

    def add_arguments(self, parser):
        parser.add_argument("--members", type=int, default=8)
        parser.add_argument("--seed", type=int, default=42)

    def handle(self, *args, **options):
        if options["members"] < 1:
            raise CommandError("--members must be at least 1")
        serializer = SyncPayloadSerializer(data=build_demo_payload(options["members"], options["seed"]))
        if not serializer.is_valid():
            raise CommandError(f"Demo payload is invalid: {serializer.errors}")

        result = run_sync(serializer.validated_data)
        summary = ", ".join(f"{count} {key}" for key, count in result.counts.items())
        if not result.success:
            raise CommandError(f"Sync reported errors: {'; '.join(map(str, result.errors))}")
        self.stdout.write(self.style.SUCCESS(f"Demo data synced: {summary}"))
