from functools import partial
from unittest import mock

from django.contrib.auth import get_user_model
from django.core.management import call_command
from django.db import DatabaseError
from django.test import TestCase, override_settings
from rest_framework.test import APITestCase
from rest_framework_simplejwt.tokens import RefreshToken

from .models import (
    Attendance,
    HealthMetric,
    Member,
    PotentialCustomer,
    Service,
    Staff,
    StaffAttendance,
    Transaction,
)
from .serializers import SyncPayloadSerializer
from .services import ReferentialError, WriteError, last_sync_time, run_sync
from .services.store import CollectionStore
from .services.syncers import AttendanceSyncer, MemberSyncer

API_KEY = "test-sync-key"


def service_payload(local_id=1, **overrides):
    data = {
        "id": local_id,
        "name": "Gym",
        "period": 30,
        "price": 500,
        "category": "gym",
        "usageType": "unlimited",
        "status": "active",
    }
    data.update(overrides)
    return data


def member_payload(local_id=1, **overrides):
    data = {
        "id": local_id,
        "fullName": "A",
        "phoneNumber": "+1",
        "firstRegisteredAt": "2026-01-01",
        "subscriptionStartDate": "2026-01-01",
        "subscriptionEndDate": "2026-02-01",
        "subscriptionUsedCount": 0,
        "subscriptionStatus": "active",
        "frozen": 0,
        "status": "active",
        "serviceId": 1,
    }
    data.update(overrides)
    return data


def validated(payload):
    serializer = SyncPayloadSerializer(data=payload)
    serializer.is_valid(raise_exception=True)
    return serializer.validated_data


@override_settings(SYNC_API_KEY=API_KEY)
class SyncApiTests(APITestCase):
    def setUp(self):
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {API_KEY}")

    def _push(self, payload):
        return self.client.post("/api/sync", payload, format="json")

    def test_service_and_member_in_same_payload(self):
        resp = self._push({"services": [service_payload()], "members": [member_payload()]})
        self.assertEqual(resp.status_code, 200)
        self.assertTrue(resp.data["success"])
        self.assertEqual(resp.data["servicesSynced"], 1)
        self.assertEqual(resp.data["membersSynced"], 1)
        self.assertEqual(resp.data["results"]["members"]["successful"], [1])
        self.assertNotIn("errors", resp.data)
        member = Member.objects.get(local_id=1)
        self.assertEqual(member.service, Service.objects.get(local_id=1))

    def test_missing_service_rolls_back_everything(self):
        resp = self._push({"services": [service_payload()], "members": [member_payload(serviceId=99)]})
        self.assertEqual(resp.status_code, 200)
        self.assertFalse(resp.data["success"])
        self.assertEqual(resp.data["servicesSynced"], 0)
        self.assertEqual(resp.data["membersSynced"], 0)
        self.assertNotIn("results", resp.data)
        self.assertIn(
            "Member with localId 1 references missing service with localId 99",
            resp.data["errors"],
        )
        self.assertEqual(Service.objects.count(), 0)
        self.assertEqual(Member.objects.count(), 0)

    def test_empty_payload(self):
        resp = self._push({})
        self.assertEqual(resp.status_code, 200)
        self.assertTrue(resp.data["success"])
        for key in (
            "servicesSynced",
            "membersSynced",
            "attendanceSynced",
            "transactionsSynced",
            "healthMetricsSynced",
            "staffSynced",
            "staffAttendanceSynced",
        ):
            self.assertEqual(resp.data[key], 0)
        self.assertNotIn("errors", resp.data)
        self.assertNotIn("results", resp.data)
        self.assertIn("timestamp", resp.data)

    def test_invalid_payload_is_rejected(self):
        resp = self._push({"members": [{"id": "abc", "fullName": "A"}]})
        self.assertEqual(resp.status_code, 400)
        self.assertIn("members", resp.data)
        self.assertEqual(Member.objects.count(), 0)

    def test_missing_api_key(self):
        self.client.credentials()
        resp = self._push({})
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(str(resp.data["detail"]), "API key is required")

    def test_wrong_api_key(self):
        self.client.credentials(HTTP_AUTHORIZATION="Bearer nope")
        resp = self._push({})
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(str(resp.data["detail"]), "Invalid API key")

    def test_x_api_key_header(self):
        self.client.credentials(HTTP_X_API_KEY=API_KEY)
        resp = self.client.get("/api/sync/status")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data["status"], "ok")

    def test_connection_test_endpoint(self):
        resp = self.client.post("/api/sync/test", {}, format="json")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data, {"success": True, "message": "Connection successful"})

    @override_settings(SYNC_API_KEY="")
    def test_unconfigured_server_key_rejects_everyone(self):
        resp = self.client.get("/api/sync/status")
        self.assertEqual(resp.status_code, 401)

    def test_desktop_pulls_pending_leads(self):
        PotentialCustomer.objects.create(full_name="Waiting", phone_number="+1")
        PotentialCustomer.objects.create(full_name="Done", phone_number="+2", status=PotentialCustomer.STATUS_CONVERTED)

        resp = self.client.get("/api/potential-customers", {"status": "pending"})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data["total"], 1)
        lead = resp.data["data"][0]
        self.assertEqual(lead["fullName"], "Waiting")
        self.assertEqual(lead["status"], "pending")
        self.assertIsNone(lead["convertedToMemberId"])

        self.client.credentials()
        self.assertEqual(self.client.get("/api/potential-customers").status_code, 401)


class LastSyncApiTests(APITestCase):
    def setUp(self):
        user = get_user_model().objects.create_user(username="admin", password="pass1234")
        token = RefreshToken.for_user(user)
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {token.access_token}")

    def test_requires_jwt(self):
        self.client.credentials()
        resp = self.client.get("/api/sync/last-sync")
        self.assertEqual(resp.status_code, 401)

    def test_null_before_first_sync(self):
        resp = self.client.get("/api/sync/last-sync")
        self.assertEqual(resp.status_code, 200)
        self.assertIsNone(resp.data["lastSyncAt"])

    def test_reports_latest_sync(self):
        run_sync(validated({"services": [service_payload()]}))
        resp = self.client.get("/api/sync/last-sync")
        expected = Service.objects.get(local_id=1).last_synced_at
        self.assertEqual(resp.data["lastSyncAt"], expected.isoformat())


def stored_rows(model):
    """Row values minus the columns every sync rewrites."""
    skip = {"updated_at", "last_synced_at"}
    names = [field.attname for field in model._meta.concrete_fields if field.attname not in skip]
    return list(model.objects.order_by("local_id").values(*names))


class SyncEngineTests(TestCase):
    def test_resync_is_idempotent(self):
        payload = validated({"services": [service_payload()], "members": [member_payload()]})
        first = run_sync(payload)
        services_before = stored_rows(Service)
        members_before = stored_rows(Member)
        second = run_sync(payload)

        self.assertTrue(first.success)
        self.assertTrue(second.success)
        self.assertEqual(Service.objects.count(), 1)
        self.assertEqual(Member.objects.count(), 1)
        self.assertEqual(stored_rows(Service), services_before)
        self.assertEqual(stored_rows(Member), members_before)

    def test_zero_service_id_means_no_service(self):
        result = run_sync(
            validated(
                {
                    "services": [service_payload(1), service_payload(2, name="Pool")],
                    "members": [member_payload(1, serviceId=0), member_payload(2, serviceId=2)],
                }
            )
        )

        self.assertTrue(result.success)
        self.assertEqual(result.counts["services"], 2)
        self.assertEqual(result.results["members"].successful_ids, [1, 2])
        member = Member.objects.get(local_id=1)
        self.assertIsNone(member.service_id)
        self.assertEqual(member.service_local_id, 0)
        self.assertEqual(Member.objects.get(local_id=2).service.name, "Pool")

    def test_zero_transaction_parents_are_unset(self):
        result = run_sync(
            validated(
                {
                    "transactions": [
                        {
                            "id": 1,
                            "transactionType": "expense",
                            "amount": 15,
                            "transactionDate": "2026-01-01",
                            "description": "Water",
                            "memberId": 0,
                            "serviceId": 0,
                            "paymentStatus": "paid",
                        }
                    ]
                }
            )
        )

        self.assertTrue(result.success)
        expense = Transaction.objects.get(local_id=1)
        self.assertIsNone(expense.member_id)
        self.assertIsNone(expense.service_id)
        self.assertEqual(expense.member_local_id, 0)

    def test_zero_member_id_on_attendance_is_still_missing(self):
        result = run_sync(validated({"attendance": [{"id": 1, "memberId": 0, "date": "2026-01-05"}]}))

        self.assertFalse(result.success)
        self.assertEqual(
            [str(error) for error in result.errors],
            ["Attendance record with localId 1 references missing member with localId 0"],
        )
        self.assertEqual(Attendance.objects.count(), 0)

    def test_resync_overwrites_mutable_fields(self):
        run_sync(validated({"services": [service_payload()], "members": [member_payload()]}))
        run_sync(validated({"members": [member_payload(fullName="Renamed", status="frozen", frozen=1)]}))

        member = Member.objects.get(local_id=1)
        self.assertEqual(member.full_name, "Renamed")
        self.assertEqual(member.status, "frozen")
        self.assertEqual(member.frozen, 1)
        self.assertIsNotNone(member.last_synced_at)

    def test_audit_columns_keep_desktop_keys(self):
        run_sync(validated({"services": [service_payload(local_id=7)], "members": [member_payload(serviceId=7)]}))
        member = Member.objects.get(local_id=1)
        self.assertEqual(member.service_local_id, 7)
        self.assertEqual(member.service_id, Service.objects.get(local_id=7).pk)

    def test_parent_already_in_cloud(self):
        run_sync(validated({"services": [service_payload()], "members": [member_payload()]}))
        result = run_sync(
            validated({"attendance": [{"id": 1, "memberId": 1, "date": "2026-01-05T08:30:00Z"}]})
        )
        self.assertTrue(result.success)
        self.assertEqual(result.counts["attendance"], 1)
        self.assertEqual(Attendance.objects.get(local_id=1).member.local_id, 1)

    def test_natural_keys_do_not_collide_across_collections(self):
        result = run_sync(
            validated(
                {
                    "services": [service_payload(local_id=5)],
                    "members": [member_payload(local_id=5, serviceId=5)],
                    "staff": [{"id": 5, "fullName": "Coach"}],
                }
            )
        )
        self.assertTrue(result.success)
        self.assertEqual(Service.objects.get(local_id=5).name, "Gym")
        self.assertEqual(Member.objects.get(local_id=5).full_name, "A")
        self.assertEqual(Staff.objects.get(local_id=5).full_name, "Coach")

    def test_one_bad_reference_discards_all_valid_services(self):
        services = [service_payload(local_id=idx, name=f"Service {idx}") for idx in range(1, 11)]
        result = run_sync(validated({"services": services, "members": [member_payload(serviceId=99)]}))

        self.assertFalse(result.success)
        self.assertEqual(result.counts["services"], 0)
        self.assertIsNone(result.results)
        self.assertTrue(all(isinstance(error, ReferentialError) for error in result.errors))
        self.assertEqual(Service.objects.count(), 0)

    def test_write_failure_keeps_other_collections(self):
        original = CollectionStore.bulk_upsert

        def failing_for_members(store, rows):
            if store.model is Member:
                raise DatabaseError("disk I/O error")
            return original(store, rows)

        payload = validated(
            {"services": [service_payload()], "members": [member_payload(1), member_payload(2)]}
        )
        with mock.patch.object(CollectionStore, "bulk_upsert", autospec=True, side_effect=failing_for_members):
            result = run_sync(payload)

        self.assertFalse(result.success)
        self.assertEqual(result.counts["services"], 1)
        self.assertEqual(result.counts["members"], 0)
        self.assertEqual(result.results["members"].failed_ids, [1, 2])
        self.assertEqual(result.results["services"].successful_ids, [1])
        self.assertEqual(len(result.errors), 1)
        self.assertIsInstance(result.errors[0], WriteError)
        self.assertIn("Failed to sync members: disk I/O error", result.as_dict()["errors"])
        self.assertEqual(Service.objects.count(), 1)
        self.assertEqual(Member.objects.count(), 0)

    def test_write_error_mentioning_missing_is_not_critical(self):
        original = CollectionStore.bulk_upsert

        def failing_for_staff(store, rows):
            if store.model is Staff:
                raise DatabaseError("relation staff is missing an index")
            return original(store, rows)

        payload = validated({"services": [service_payload()], "staff": [{"id": 1, "fullName": "Coach"}]})
        with mock.patch.object(CollectionStore, "bulk_upsert", autospec=True, side_effect=failing_for_staff):
            result = run_sync(payload)

        self.assertEqual(result.counts["services"], 1)
        self.assertIsNotNone(result.results)
        self.assertEqual(Service.objects.count(), 1)

    def test_unexpected_error_reports_single_message(self):
        with mock.patch("apps.sync.services.engine._collect_errors", side_effect=RuntimeError("boom")):
            result = run_sync(validated({"services": [service_payload()]}))

        self.assertFalse(result.success)
        self.assertEqual([str(error) for error in result.errors], ["boom"])
        self.assertEqual(sum(result.counts.values()), 0)
        self.assertIsNone(result.results)
        self.assertEqual(Service.objects.count(), 0)

    def test_transaction_optional_references(self):
        run_sync(validated({"services": [service_payload()], "members": [member_payload()]}))
        result = run_sync(
            validated(
                {
                    "transactions": [
                        {
                            "id": 1,
                            "transactionType": "income",
                            "amount": 500,
                            "transactionDate": "2026-01-01",
                            "description": "Subscription",
                            "memberId": 1,
                            "serviceId": 1,
                            "paymentStatus": "paid",
                        },
                        {
                            "id": 2,
                            "transactionType": "expense",
                            "amount": "42.50",
                            "transactionDate": "2026-01-02",
                            "description": "Towels",
                            "paymentStatus": "paid",
                        },
                    ]
                }
            )
        )
        self.assertTrue(result.success)
        self.assertEqual(result.results["transactions"].successful_ids, [1, 2])
        expense = Transaction.objects.get(local_id=2)
        self.assertIsNone(expense.member_id)
        self.assertIsNone(expense.service_id)

    def test_transaction_with_two_missing_parents_fails_once(self):
        result = run_sync(
            validated(
                {
                    "transactions": [
                        {
                            "id": 3,
                            "transactionType": "income",
                            "amount": 10,
                            "transactionDate": "2026-01-01",
                            "description": "Orphan",
                            "memberId": 8,
                            "serviceId": 9,
                            "paymentStatus": "paid",
                        }
                    ]
                }
            )
        )
        messages = [str(error) for error in result.errors]
        self.assertEqual(
            messages,
            [
                "Transaction with localId 3 references missing member with localId 8",
                "Transaction with localId 3 references missing service with localId 9",
            ],
        )
        self.assertEqual(Transaction.objects.count(), 0)

    def test_health_metrics_and_staff_attendance(self):
        payload = {
            "services": [service_payload()],
            "members": [member_payload()],
            "healthMetrics": [{"id": 1, "memberId": 1, "measuredAt": "2026-01-03T10:00:00Z", "weight": 80.5}],
            "staff": [{"id": 1, "fullName": "Coach", "role": "trainer"}],
            "staffAttendance": [{"id": 1, "staffId": 1, "scannedAt": "2026-01-03T07:00:00Z"}],
        }
        result = run_sync(validated(payload))
        self.assertTrue(result.success)
        self.assertEqual(HealthMetric.objects.get(local_id=1).weight, 80.5)
        self.assertEqual(StaffAttendance.objects.get(local_id=1).staff.full_name, "Coach")
        self.assertEqual(StaffAttendance.objects.get(local_id=1).staff_local_id, 1)

    def test_staff_attendance_for_unknown_staff_rolls_back(self):
        payload = {
            "staff": [{"id": 1, "fullName": "Coach"}],
            "staffAttendance": [{"id": 1, "staffId": 2, "scannedAt": "2026-01-03T07:00:00Z"}],
        }
        result = run_sync(validated(payload))
        self.assertFalse(result.success)
        self.assertEqual(
            [str(error) for error in result.errors],
            ["Staff attendance record with localId 1 references missing staff with localId 2"],
        )
        self.assertEqual(Staff.objects.count(), 0)

    def test_repeated_natural_key_in_batch_keeps_last_copy(self):
        payload = validated(
            {"services": [service_payload(name="Old"), service_payload(name="New")]}
        )
        result = run_sync(payload)
        self.assertTrue(result.success)
        self.assertEqual(result.results["services"].successful_ids, [1])
        self.assertEqual(Service.objects.get(local_id=1).name, "New")

    def test_last_sync_time(self):
        self.assertIsNone(last_sync_time())
        run_sync(validated({"services": [service_payload()], "staff": [{"id": 1, "fullName": "Coach"}]}))
        expected = max(Service.objects.get().last_synced_at, Staff.objects.get().last_synced_at)
        self.assertEqual(last_sync_time(), expected)

    def test_last_sync_time_ignores_failing_table(self):
        run_sync(validated({"staff": [{"id": 1, "fullName": "Coach"}]}))
        with mock.patch.object(Service.objects, "filter", side_effect=DatabaseError("gone")):
            self.assertEqual(last_sync_time(), Staff.objects.get().last_synced_at)


class FakeStore:
    """In-memory stand-in for CollectionStore."""

    def __init__(self, model, tables):
        self.model = model
        self.tables = tables
        self.using = "default"
        self.resolve_calls = 0

    def resolve(self, natural_keys):
        self.resolve_calls += 1
        table = self.tables.get(self.model, {})
        return {key: table[key] for key in natural_keys if key in table}

    def bulk_upsert(self, rows):
        table = self.tables.setdefault(self.model, {})
        for row in rows:
            table.setdefault(row["local_id"], len(table) + 100)
        return len(rows)


class SyncerTests(TestCase):
    def setUp(self):
        self.tables = {}
        self.store_factory = partial(FakeStore, tables=self.tables)

    def _members(self, *service_ids):
        return [
            {"local_id": idx + 1, "full_name": f"M{idx + 1}", "service_local_id": service_id}
            for idx, service_id in enumerate(service_ids)
        ]

    def test_references_are_resolved_once_per_batch(self):
        self.tables[Service] = {1: 10, 2: 20}
        syncer = MemberSyncer(store_factory=self.store_factory)
        result = syncer.sync(self._members(1, 2, 1, 2, None))

        self.assertEqual(syncer.reference_stores["service_local_id"].resolve_calls, 1)
        self.assertEqual(result.synced_count, 5)
        self.assertEqual(result.successful_ids, [1, 2, 3, 4, 5])
        self.assertEqual(result.failed_ids, [])

    def test_partition_valid_and_invalid(self):
        self.tables[Service] = {1: 10}
        result = MemberSyncer(store_factory=self.store_factory).sync(self._members(1, 3, None))

        self.assertEqual(result.successful_ids, [1, 3])
        self.assertEqual(result.failed_ids, [2])
        self.assertEqual(
            [str(error) for error in result.errors],
            ["Member with localId 2 references missing service with localId 3"],
        )
        self.assertEqual(set(self.tables[Member]), {1, 3})

    def test_build_row_maps_surrogate_and_audit_keys(self):
        syncer = MemberSyncer(store_factory=self.store_factory)
        record = {"local_id": 4, "full_name": "M4", "service_local_id": 2, "unknown": "dropped"}
        row = syncer.build_row(record, {"service_local_id": {2: 20}}, synced_at="now")

        self.assertEqual(row["service_id"], 20)
        self.assertEqual(row["service_local_id"], 2)
        self.assertEqual(row["last_synced_at"], "now")
        self.assertNotIn("unknown", row)

    def test_required_reference_cannot_be_empty(self):
        result = AttendanceSyncer(store_factory=self.store_factory).sync([{"local_id": 1, "member_local_id": None}])
        self.assertEqual(result.failed_ids, [1])
        self.assertTrue(result.errors[0].critical)

    def test_store_failure_fails_whole_subset(self):
        class BrokenStore(FakeStore):
            def bulk_upsert(self, rows):
                raise DatabaseError("constraint failed")

        self.tables[Service] = {1: 10}
        result = MemberSyncer(store_factory=partial(BrokenStore, tables=self.tables)).sync(self._members(1, 1))

        self.assertEqual(result.synced_count, 0)
        self.assertEqual(result.successful_ids, [])
        self.assertEqual(result.failed_ids, [1, 2])
        self.assertFalse(result.errors[0].critical)


class SeedCommandTests(TestCase):
    def test_seed_twice_creates_no_duplicates(self):
        call_command("seed_gym_demo", members=3, verbosity=0)
        call_command("seed_gym_demo", members=3, verbosity=0)

        self.assertEqual(Service.objects.count(), 4)
        self.assertEqual(Member.objects.count(), 3)
        self.assertEqual(Attendance.objects.count(), 9)
        self.assertEqual(Transaction.objects.count(), 4)
        self.assertEqual(HealthMetric.objects.count(), 3)
        self.assertEqual(Staff.objects.count(), 3)
        self.assertEqual(StaffAttendance.objects.count(), 6)
