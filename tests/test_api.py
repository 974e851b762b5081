"""
tests/test_api.py

HTTP surface exercised through FastAPI's TestClient with an isolated
workspace per test.
"""

from __future__ import annotations

import unittest

from fastapi.testclient import TestClient

from app.api.dependencies import get_query_assistant, get_workspace
from app.config import PROJECT_ROOT
from app.domain.delivery import DEFAULT_SCHEMA
from app.main import create_app
from app.services.import_service import DatasetImportService, get_dataset_import_service
from app.services.record_source import column_names_of
from app.services.workspace_state import WorkspaceSnapshot, WorkspaceState, load_sample_records
from llm_advisory.adapter import MockLLMAdapter
from llm_advisory.advisor import QueryAssistant

CSV_BYTES = (
    b"Order Date,Delivery Region,Total Deliver Time (minutes),Order Total\n"
    b"2023-10-27,Palo Alto,200,20\n"
    b"2023-10-27,,30,10\n"
)


class ApiTestCase(unittest.TestCase):
    def setUp(self) -> None:
        records = load_sample_records(PROJECT_ROOT / "config" / "sample_deliveries.json")
        self.workspace = WorkspaceState(
            WorkspaceSnapshot(
                records=tuple(records),
                column_names=tuple(column_names_of(records)),
                schema=DEFAULT_SCHEMA,
            )
        )
        app = create_app()
        app.dependency_overrides[get_workspace] = lambda: self.workspace
        app.dependency_overrides[get_dataset_import_service] = lambda: DatasetImportService()
        app.dependency_overrides[get_query_assistant] = lambda: QueryAssistant(MockLLMAdapter())
        self.client = TestClient(app)

    def _stage_csv(self) -> dict:
        response = self.client.post(
            "/import/upload",
            files={"file": ("deliveries.csv", CSV_BYTES, "text/csv")},
        )
        self.assertEqual(response.status_code, 200)
        return response.json()


class HealthApiTests(ApiTestCase):
    def test_health_reports_committed_rows(self) -> None:
        response = self.client.get("/health")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["status"], "ok")
        self.assertEqual(response.json()["committed_rows"], 6)


class ImportApiTests(ApiTestCase):
    def test_upload_then_commit(self) -> None:
        report = self._stage_csv()

        self.assertEqual(report["row_count"], 2)
        mapping = {item["role"]: item for item in report["schema_mapping"]}
        self.assertEqual(mapping["region"]["column"], "Delivery Region")
        self.assertEqual(mapping["restaurant_id"]["label"], "Not Found")
        profiles = {profile["name"]: profile for profile in report["profiles"]}
        self.assertEqual(profiles["Delivery Region"]["missing_count"], 1)
        self.assertEqual(profiles["Delivery Region"]["action"], "Check SQL")
        self.assertEqual(profiles["Order Total"]["action"], "Ready")

        self.assertEqual(self.client.get("/health").json()["committed_rows"], 6)

        committed = self.client.post("/import/commit")
        self.assertEqual(committed.status_code, 200)
        self.assertEqual(committed.json()["row_count"], 2)
        self.assertEqual(self.workspace.snapshot.schema.total_duration, "Total Deliver Time (minutes)")

    def test_upload_rejects_other_file_types(self) -> None:
        response = self.client.post(
            "/import/upload",
            files={"file": ("notes.pdf", b"%PDF", "application/pdf")},
        )
        self.assertEqual(response.status_code, 400)

    def test_upload_rejects_legacy_excel(self) -> None:
        response = self.client.post(
            "/import/upload",
            files={"file": ("legacy.xls", b"\xd0\xcf\x11\xe0", "application/vnd.ms-excel")},
        )
        self.assertEqual(response.status_code, 400)

    def test_json_import_and_schema_override(self) -> None:
        response = self.client.post(
            "/import",
            json={"records": [{"City": "A", "Zone": "Z"}]},
        )
        self.assertEqual(response.status_code, 200)

        overridden = self.client.post("/import/schema", json={"overrides": {"region": "Zone"}})
        self.assertEqual(overridden.status_code, 200)
        mapping = {item["role"]: item["column"] for item in overridden.json()["schema_mapping"]}
        self.assertEqual(mapping["region"], "Zone")

        rejected = self.client.post("/import/schema", json={"overrides": {"region": "Nope"}})
        self.assertEqual(rejected.status_code, 400)
        codes = {error["code"] for error in rejected.json()["detail"]["errors"]}
        self.assertEqual(codes, {"unknown_source_column"})

    def test_commit_without_pending_import(self) -> None:
        response = self.client.post("/import/commit")
        self.assertEqual(response.status_code, 400)

    def test_schema_override_without_pending_import(self) -> None:
        response = self.client.post("/import/schema", json={"overrides": {}})
        self.assertEqual(response.status_code, 400)


class DashboardApiTests(ApiTestCase):
    def test_kpis(self) -> None:
        response = self.client.get("/dashboard/kpis")

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["total_orders"], 6)
        self.assertAlmostEqual(body["total_revenue"], 202.01, places=2)

    def test_region_filter(self) -> None:
        response = self.client.get("/dashboard/kpis", params={"region": "San Jose"})
        self.assertEqual(response.json()["total_orders"], 2)

    def test_breakdown_keeps_first_seen_order(self) -> None:
        response = self.client.get("/dashboard/breakdown")
        names = [bucket["name"] for bucket in response.json()]
        self.assertEqual(names, ["Mountain View", "Palo Alto", "San Jose"])

    def test_filters(self) -> None:
        body = self.client.get("/dashboard/filters").json()
        self.assertEqual(body["dates"], ["2023-10-26", "2023-10-27"])
        self.assertIn("deliveryRegion", body["columns"])

    def test_timeline_ordered_by_time_of_day(self) -> None:
        points = self.client.get("/dashboard/timeline").json()
        self.assertEqual(points[0]["name"], "2:52:12 AM")
        self.assertEqual(points[-1]["name"], "11:46:38 PM")

    def test_pivot_sum_and_mean(self) -> None:
        summed = self.client.post(
            "/dashboard/pivot",
            json={"group_column": "deliveryRegion", "metric_column": "orderTotal"},
        ).json()
        self.assertEqual(summed["aggregation"], "sum")

        averaged = self.client.post(
            "/dashboard/pivot",
            json={
                "group_column": "deliveryRegion",
                "metric_column": "prepTimeMinutes",
                "chart_type": "line",
            },
        ).json()
        self.assertEqual(averaged["aggregation"], "mean")
        self.assertEqual(averaged["chart_type"], "LINE")

    def test_pivot_scatter(self) -> None:
        body = self.client.post(
            "/dashboard/pivot",
            json={
                "group_column": "prepTimeMinutes",
                "metric_column": "driveTimeMinutes",
                "chart_type": "SCATTER",
            },
        ).json()
        self.assertEqual(len(body["points"]), 6)
        self.assertEqual(body["buckets"], [])

    def test_pivot_rejects_unknown_chart_type(self) -> None:
        response = self.client.post(
            "/dashboard/pivot",
            json={"group_column": "a", "metric_column": "b", "chart_type": "PIE"},
        )
        self.assertEqual(response.status_code, 400)


class AutomationApiTests(ApiTestCase):
    def test_settings_round_trip(self) -> None:
        current = self.client.get("/settings").json()
        current["high_refund_threshold"] = 10

        updated = self.client.put("/settings", json=current)
        self.assertEqual(updated.status_code, 200)
        self.assertEqual(self.workspace.snapshot.settings.high_refund_threshold, 10)

    def test_settings_reject_negative_values(self) -> None:
        current = self.client.get("/settings").json()
        current["late_delivery_threshold"] = -1
        self.assertEqual(self.client.put("/settings", json=current).status_code, 422)

    def test_actions_filtered_by_stakeholder(self) -> None:
        everything = self.client.get("/actions").json()
        customers = self.client.get("/actions", params={"stakeholder": "customer"}).json()

        self.assertEqual(everything["total"], sum(everything["counts"].values()))
        self.assertEqual(customers["total"], everything["counts"]["Customer"])
        self.assertTrue(all(item["stakeholder"] == "Customer" for item in customers["items"]))

    def test_actions_reject_unknown_stakeholder(self) -> None:
        self.assertEqual(self.client.get("/actions", params={"stakeholder": "chef"}).status_code, 400)

    def test_simulation(self) -> None:
        response = self.client.post(
            "/simulate",
            json={"minute_threshold": 45, "action_kind": "credit_5"},
        )
        body = response.json()

        self.assertEqual(body["impacted_count"], 3)
        self.assertAlmostEqual(body["estimated_cost"], 15.0)
        self.assertAlmostEqual(body["hours_saved"], 0.75)
        self.assertTrue(body["is_positive_roi"])

    def test_simulation_actions(self) -> None:
        self.assertEqual(
            self.client.get("/simulate/actions").json(),
            ["credit_5", "credit_10", "full_refund"],
        )


class ConsoleApiTests(ApiTestCase):
    def test_query_committed_records(self) -> None:
        response = self.client.post(
            "/console/query",
            json={"sql": "SELECT id FROM deliveries WHERE deliveryRegion = 'San Jose'"},
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual([row["id"] for row in response.json()["rows"]], ["17", "12"])

    def test_bad_sql(self) -> None:
        response = self.client.post("/console/query", json={"sql": "DROP EVERYTHING"})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["detail"]["sql"], "DROP EVERYTHING")

    def test_clean_staged_import_then_commit(self) -> None:
        self._stage_csv()
        suggestions = self.client.get("/console/suggestions").json()
        self.assertEqual(suggestions[0]["label"], "Remove 1 rows with missing Region")

        cleaned = self.client.post("/console/query", json={"sql": suggestions[0]["sql"]}).json()
        self.assertTrue(cleaned["is_mutation"])
        self.assertEqual(cleaned["row_count"], 1)

        committed = self.client.post("/console/commit")
        self.assertEqual(committed.status_code, 200)
        self.assertEqual(committed.json()["row_count"], 1)
        self.assertIsNone(self.workspace.snapshot.pending)

    def test_case_colliding_columns(self) -> None:
        staged = self.client.post("/import", json={"records": [{"Zone": "a", "zone": "b"}]})
        self.assertEqual(staged.status_code, 200)

        response = self.client.post("/console/query", json={"sql": "SELECT * FROM deliveries"})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["detail"]["sql"], "CREATE TABLE deliveries")

    def test_commit_keeps_boolean_cells(self) -> None:
        staged = self.client.post(
            "/import",
            json={"records": [{"id": "1", "isAsap": True}, {"id": "2", "isAsap": False}]},
        )
        self.assertEqual(staged.status_code, 200)

        queried = self.client.post("/console/query", json={"sql": "SELECT * FROM deliveries"})
        self.assertEqual([row["isAsap"] for row in queried.json()["rows"]], [True, False])

        committed = self.client.post("/console/commit")
        self.assertEqual(committed.status_code, 200)
        self.assertIs(self.workspace.snapshot.records[0]["isAsap"], True)
        self.assertIs(self.workspace.snapshot.records[1]["isAsap"], False)

    def test_assistant(self) -> None:
        response = self.client.post("/assistant/ask", json={"question": "Slowest region?"})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["sql"], "SELECT * FROM deliveries LIMIT 10")


if __name__ == "__main__":
    unittest.main()
