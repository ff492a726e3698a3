import datetime as dt
import unittest
from unittest import mock

from fastapi.testclient import TestClient

import main
from chartgrid.session import clear_sessions
from firestore_fakes import FakeFirestore, value_doc

HEADERS = {"authorization": "Bearer tok", "x-city-id": "c1", "x-category-id": "k1"}


def every_day_at_0830(day: str):
    # one draw per date; values for heads A and B
    return [value_doc(f"{day}T08:30:00+05:30", [dt.date.fromisoformat(day).day, 1])]


class ApiTestCase(unittest.TestCase):
    heads_status = 200
    status_by_date: dict = {}

    def setUp(self):
        clear_sessions()
        self.fake = FakeFirestore(["A", "B"], heads_status=self.heads_status,
                                  status_by_date=dict(self.status_by_date),
                                  default_values=every_day_at_0830)

        async def fake_http():
            return self.fake.client()

        patcher = mock.patch.object(main, "ensure_http", fake_http)
        patcher.start()
        self.addCleanup(patcher.stop)
        self.addCleanup(clear_sessions)
        self.client = TestClient(main.app)


class TestGridEndpoints(ApiTestCase):
    def test_missing_ids(self):
        r = self.client.get("/grid", headers={"authorization": "tok"})
        self.assertEqual(r.status_code, 400)

    def test_grid_ready(self):
        r = self.client.get("/grid", headers=HEADERS)
        self.assertEqual(r.status_code, 200)
        body = r.json()
        self.assertEqual(body["state"], "ready")
        self.assertEqual(body["categories"], ["A", "B"])
        self.assertEqual(body["active"], "A")
        snap = body["snapshot"]
        self.assertEqual(snap["row_count"], 60)
        self.assertEqual(len(snap["cells"]), 60)
        self.assertEqual(snap["cells"][0][0]["value"], "Time")
        self.assertNotEqual(snap["cells"][1][1]["value"], "-")
        self.assertEqual(self.fake.requests[0].headers["authorization"], "Bearer tok")

    def test_grid_loads_once(self):
        self.client.get("/grid", headers=HEADERS)
        self.client.get("/grid", headers=HEADERS)
        self.assertEqual(len(self.fake.heads_requests), 1)
        self.client.get("/grid?force=true", headers=HEADERS)
        self.assertEqual(len(self.fake.heads_requests), 2)

    def test_toggle_and_switch(self):
        self.client.get("/grid", headers=HEADERS)
        r = self.client.post("/grid/toggle", json={"row": 1, "col": 1}, headers=HEADERS)
        self.assertEqual(r.json()["selected"], True)
        self.assertEqual(r.json()["revision"], 1)

        r = self.client.post("/grid/toggle", json={"row": 0, "col": 1}, headers=HEADERS)
        self.assertEqual(r.json()["selected"], False)

        self.client.post("/grid/active", json={"category": "B"}, headers=HEADERS)
        body = self.client.post("/grid/active", json={"category": "A"}, headers=HEADERS).json()
        self.assertEqual(body["active"], "A")
        self.assertTrue(body["snapshot"]["cells"][1][1]["selected"])

        r = self.client.get("/grid/selection?category=A", headers=HEADERS)
        self.assertEqual(r.json()["cells"], [[1, 1]])

    def test_select_all_scoped_to_active(self):
        self.client.get("/grid", headers=HEADERS)
        self.client.post("/grid/select-all", json={"checked": True}, headers=HEADERS)
        a = self.client.get("/grid/selection?category=A", headers=HEADERS).json()
        b = self.client.get("/grid/selection?category=B", headers=HEADERS).json()
        self.assertGreater(a["count"], 0)
        self.assertEqual(b["count"], 0)

    def test_select_all_can_be_cleared(self):
        self.client.get("/grid", headers=HEADERS)
        self.client.post("/grid/select-all", json={"checked": True}, headers=HEADERS)
        body = self.client.post("/grid/select-all", json={"checked": False}, headers=HEADERS).json()
        self.assertFalse(any(cell["selected"] for row in body["snapshot"]["cells"] for cell in row))

    def test_bad_requests(self):
        self.client.get("/grid", headers=HEADERS)
        r = self.client.post("/grid/active", json={"category": "Z"}, headers=HEADERS)
        self.assertEqual(r.status_code, 400)
        r = self.client.post("/grid/toggle", json={"row": 500, "col": 1}, headers=HEADERS)
        self.assertEqual(r.status_code, 400)

    def test_mutation_before_load(self):
        r = self.client.post("/grid/toggle", json={"row": 1, "col": 1}, headers=HEADERS)
        self.assertEqual(r.status_code, 409)


class TestUnauthorized(ApiTestCase):
    heads_status = 403

    def test_grid_unauthorized(self):
        r = self.client.get("/grid", headers=HEADERS)
        self.assertEqual(r.status_code, 401)
        self.assertEqual(r.json()["state"], "unauthorized")
        self.assertEqual(self.fake.value_requests, [])


class TestFailed(ApiTestCase):
    heads_status = 500

    def test_grid_failed(self):
        r = self.client.get("/grid", headers=HEADERS)
        self.assertEqual(r.status_code, 502)
        self.assertEqual(r.json()["state"], "failed")
        self.assertIn("500", r.json()["error"])


class TestPages(ApiTestCase):
    def test_app_inlines_session_headers(self):
        r = self.client.get("/app", headers=HEADERS)
        self.assertEqual(r.status_code, 200)
        self.assertIn('"x-city-id": "c1"', r.text)

    def test_app_escapes_values_and_keeps_select_all_state(self):
        text = self.client.get("/app", headers=HEADERS).text
        self.assertIn("function esc(s)", text)
        self.assertIn("${esc(cell.value)}", text)
        self.assertIn("${esc(c)} Chart", text)
        self.assertIn("picked===data?'checked':''", text)

    def test_headers_cannot_break_out_of_script(self):
        headers = dict(HEADERS, **{"x-city-id": "</script><b>"})
        text = self.client.get("/app", headers=headers).text
        self.assertNotIn("</script><b>", text)

    def test_health_and_root(self):
        self.assertEqual(self.client.get("/health").json()["status"], "ok")
        self.assertEqual(self.client.get("/").json()["version"], main.APP_VERSION)
        self.assertIn("Privacy Policy", self.client.get("/privacy").text)


if __name__ == "__main__":
    unittest.main()
