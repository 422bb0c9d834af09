"""
HTTP surface: JSON API, server-rendered flow and accounts, against the
in-memory store with a mocked OpenAI client
"""
import base64
from unittest.mock import patch

from PIL import Image

from turmeric_care.routers.analysis import RETRY_MESSAGE
from turmeric_care.routers import web
from turmeric_care.routers.web import UPLOAD_FAILED_MESSAGE
from turmeric_care.utils.upload import INVALID_TYPE_MESSAGE, TOO_LARGE_MESSAGE, UNREADABLE_MESSAGE
from turmeric_care.utils.view_state import ANALYSIS_FAILED_MESSAGE

from conftest import LEAF_SPOT_REPLY


class TestHealth:

    def test_health(self, app_client):
        response = app_client.get("/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["store"] == "memory"
        assert body["services"] == {"openai": False, "supabase": False}


class TestDiseaseApi:

    def test_list_and_get(self, app_client):
        diseases = app_client.get("/api/diseases").json()
        assert len(diseases) == 5
        assert diseases[0]["name"] == "Leaf Spot Disease"

        detail = app_client.get(f"/api/diseases/{diseases[1]['id']}").json()
        assert detail["name"] == "Rhizome Rot"
        assert detail["severity"] == "high"

    def test_unknown_disease(self, app_client):
        assert app_client.get("/api/diseases/nope").status_code == 404

    def test_seed_is_idempotent(self, app_client):
        response = app_client.post("/api/diseases/seed")
        assert response.json() == {"message": "Diseases already seeded"}
        assert len(app_client.get("/api/diseases").json()) == 5


class TestAnalysisApi:

    def test_analyze_json(self, app_client, use_openai, png_data_url):
        use_openai(LEAF_SPOT_REPLY)

        response = app_client.post("/api/analyses", json={"image_base64": png_data_url})

        assert response.status_code == 200
        analysis_id = response.json()["analysis_id"]
        analysis = app_client.get(f"/api/analyses/{analysis_id}").json()
        assert analysis["status"] == "completed"
        assert analysis["detected_disease"] == "Leaf Spot Disease"
        assert analysis["severity"] == "moderate"

    def test_analyze_multipart(self, app_client, use_openai, png_bytes):
        use_openai(LEAF_SPOT_REPLY)

        response = app_client.post("/api/analyses/upload", files={"file": ("leaf.png", png_bytes, "image/png")})

        assert response.status_code == 200
        assert "analysis_id" in response.json()

    def test_non_image_is_bad_request(self, app_client, use_openai):
        client = use_openai(LEAF_SPOT_REPLY)
        pdf = "data:application/pdf;base64," + base64.b64encode(b"%PDF-1.4").decode()

        response = app_client.post("/api/analyses", json={"image_base64": pdf})

        assert response.status_code == 400
        assert response.json()["detail"] == INVALID_TYPE_MESSAGE
        client.chat.completions.create.assert_not_called()

    def test_oversize_upload_is_bad_request(self, app_client):
        big = b"\x89PNG" + b"\x00" * (10 * 1024 * 1024)
        response = app_client.post("/api/analyses/upload", files={"file": ("big.png", big, "image/png")})
        assert response.status_code == 400
        assert response.json()["detail"] == TOO_LARGE_MESSAGE

    def test_pixel_bomb_is_bad_request(self, app_client, use_openai, png_bytes):
        client = use_openai(LEAF_SPOT_REPLY)

        with patch.object(Image, "MAX_IMAGE_PIXELS", 50):
            response = app_client.post("/api/analyses/upload", files={"file": ("leaf.png", png_bytes, "image/png")})

        assert response.status_code == 400
        assert response.json()["detail"] == UNREADABLE_MESSAGE
        client.chat.completions.create.assert_not_called()

    def test_upstream_failure(self, app_client, use_openai, png_data_url):
        use_openai(ConnectionError("upstream down"))

        response = app_client.post("/api/analyses", json={"image_base64": png_data_url})

        assert response.status_code == 502
        assert response.json()["detail"] == RETRY_MESSAGE

    def test_model_not_configured(self, app_client, png_data_url):
        response = app_client.post("/api/analyses", json={"image_base64": png_data_url})
        assert response.status_code == 503

    def test_unknown_analysis(self, app_client):
        assert app_client.get("/api/analyses/nope").status_code == 404

    def test_anonymous_list_is_empty(self, app_client):
        assert app_client.get("/api/analyses").json() == []


class TestWebFlow:

    def test_home_is_idle(self, app_client):
        response = app_client.get("/")
        assert response.status_code == 200
        assert "Analyze Leaf" in response.text

    def test_upload_reaches_result(self, app_client, use_openai, png_bytes):
        use_openai(LEAF_SPOT_REPLY)

        response = app_client.post("/upload", files={"file": ("leaf.png", png_bytes, "image/png")})

        assert response.status_code == 200
        assert "Leaf Spot Disease" in response.text
        assert "Remove affected leaves immediately." in response.text
        assert "Analyze Another Leaf" in response.text

    def test_non_image_shows_error(self, app_client, use_openai):
        client = use_openai(LEAF_SPOT_REPLY)

        response = app_client.post("/upload", files={"file": ("notes.txt", b"hello", "text/plain")})

        assert "Something went wrong" in response.text
        assert INVALID_TYPE_MESSAGE in response.text
        client.chat.completions.create.assert_not_called()

    def test_failed_analysis_shows_error_not_result(self, app_client, use_openai, png_bytes):
        use_openai(ConnectionError("upstream down"))

        response = app_client.post("/upload", files={"file": ("leaf.png", png_bytes, "image/png")})

        assert ANALYSIS_FAILED_MESSAGE in response.text
        assert "Analyze Another Leaf" not in response.text

    def test_oversize_upload_shows_size_error(self, app_client):
        big = b"\x89PNG" + b"\x00" * (10 * 1024 * 1024)

        response = app_client.post("/upload", files={"file": ("big.png", big, "image/png")})

        assert TOO_LARGE_MESSAGE in response.text

    def test_unexpected_upload_error_hides_details(self, app_client, png_bytes):
        boom = RuntimeError("storage key sk-secret rejected")
        with patch.object(web, "create_pending_analysis", side_effect=boom):
            response = app_client.post("/upload", files={"file": ("leaf.png", png_bytes, "image/png")})

        assert UPLOAD_FAILED_MESSAGE in response.text
        assert "sk-secret" not in response.text

    def test_reset_returns_to_upload_form(self, app_client):
        app_client.post("/upload", files={"file": ("notes.txt", b"hello", "text/plain")})

        response = app_client.post("/reset")

        assert "Analyze Leaf" in response.text
        assert "Something went wrong" not in response.text

    def test_uploaded_image_is_served(self, app_client, use_openai, png_bytes, seeded_store):
        use_openai(LEAF_SPOT_REPLY)
        app_client.post("/upload", files={"file": ("leaf.png", png_bytes, "image/png")})

        [row] = seeded_store._analyses.values()
        response = app_client.get(row["image_url"])

        assert response.status_code == 200
        assert response.content == png_bytes
        assert response.headers["content-type"] == "image/png"

    def test_library_pages(self, app_client):
        diseases = app_client.get("/api/diseases").json()
        assert "Bacterial Wilt" in app_client.get("/library").text
        detail = app_client.get(f"/library/{diseases[3]['id']}")
        assert "Ralstonia solanacearum" in detail.text
        assert app_client.get("/library/nope").status_code == 404


class TestAccountsFlow:

    def test_history_requires_sign_in(self, app_client):
        response = app_client.get("/history", follow_redirects=False)
        assert response.status_code == 303
        assert response.headers["location"] == "/signin"

    def test_sign_up_then_history(self, app_client, use_openai, png_bytes):
        use_openai(LEAF_SPOT_REPLY)

        signup = app_client.post("/signup", data={"email": "farmer@example.com", "password": "curcuma-longa"})
        assert "farmer@example.com" in signup.text

        app_client.post("/upload", files={"file": ("leaf.png", png_bytes, "image/png")})

        mine = app_client.get("/api/analyses").json()
        assert len(mine) == 1
        assert mine[0]["detected_disease"] == "Leaf Spot Disease"
        assert "Leaf Spot Disease" in app_client.get("/history").text

    def test_bad_credentials(self, app_client):
        app_client.post("/signup", data={"email": "farmer@example.com", "password": "curcuma-longa"})
        app_client.get("/signout")

        response = app_client.post("/signin", data={"email": "farmer@example.com", "password": "wrong-password"})

        assert response.status_code == 401
        assert "Invalid email or password" in response.text

    def test_short_password_rejected(self, app_client):
        response = app_client.post("/signup", data={"email": "farmer@example.com", "password": "short"})
        assert response.status_code == 400
        assert "at least 8 characters" in response.text
