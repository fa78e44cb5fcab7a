from __future__ import annotations

from starlette.testclient import TestClient

from fakes import FakeExtractor, FakeSuggester, failing_extractor
from menu_allergens.acquisition.artifacts import ImageArtifact
from menu_allergens.acquisition.readers import ImageReader
from menu_allergens.api.app import create_app, retry_after_seconds
from menu_allergens.config import Settings
from menu_allergens.ratelimit import RateLimiter
from menu_allergens.service import MenuImportService


class FrozenClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class OcrStub(ImageReader):
    def read_image(self, artifact: ImageArtifact) -> str:
        return "Currywurst"


def _client(settings, **service_kwargs) -> TestClient:
    service = MenuImportService(settings, **service_kwargs)
    limiter = RateLimiter(clock=FrozenClock())
    return TestClient(create_app(service, limiter=limiter))


def test_health_and_codes(settings) -> None:
    client = _client(settings)
    assert client.get("/api/health").json()["status"] == "ok"
    codes = client.get("/api/codes").json()
    assert len(codes["allergens"]) == 14
    assert codes["additives"][0] == {"key": "1", "code": "1", "label": "Farbstoff"}


def test_parse_menu_with_text(settings, menu_contract) -> None:
    extractor = FakeExtractor(menu_contract)
    client = _client(settings, extractor=extractor)

    resp = client.post("/api/parse-menu", data={"text": "Bratwurst, Apfelstrudel"})

    assert resp.status_code == 200
    body = resp.json()
    assert [p["name"] for p in body["products"]] == ["Bratwurst", "Apfelstrudel"]
    assert body["products"][1]["allergens"] == ["a", "c", "g"]
    assert all(p["id"] for p in body["products"])
    assert body["warnings"] == ["Preise wurden ignoriert."]
    assert extractor.texts == ["Bratwurst, Apfelstrudel"]


def test_parse_menu_with_image_upload(settings) -> None:
    extractor = FakeExtractor()
    client = _client(settings, extractor=extractor, image_reader=OcrStub())

    resp = client.post("/api/parse-menu", files={"image": ("karte.png", b"\x89PNG", "image/png")})

    assert resp.status_code == 200
    assert resp.json()["warnings"] == ["Datei wurde per automatischer Texterkennung verarbeitet."]
    assert extractor.texts == ["Currywurst"]


def test_parse_menu_validation_errors() -> None:
    client = _client(Settings(openai_api_key="sk", parse_rate_limit=50), extractor=FakeExtractor())

    resp = client.post("/api/parse-menu", data={"text": "   "})
    assert resp.status_code == 400
    assert "error" in resp.json()

    resp = client.post("/api/parse-menu", files={"image": ("karte.gif", b"GIF89a", "image/gif")})
    assert resp.status_code == 400

    resp = client.post("/api/parse-menu", files={"pdf": ("karte.png", b"\x89PNG", "image/png")})
    assert resp.status_code == 400


def test_parse_menu_rate_limited_with_retry_after(settings) -> None:
    client = _client(settings, extractor=FakeExtractor())
    headers = {"X-Forwarded-For": "203.0.113.7, 10.0.0.1"}

    assert client.post("/api/parse-menu", data={"text": "a"}, headers=headers).status_code == 200
    assert client.post("/api/parse-menu", data={"text": "b"}, headers=headers).status_code == 200
    resp = client.post("/api/parse-menu", data={"text": "c"}, headers=headers)

    assert resp.status_code == 429
    assert resp.headers["retry-after"] == "60"
    assert resp.json() == {"error": "Zu viele Anfragen. Bitte versuchen Sie es gleich erneut."}

    other = client.post("/api/parse-menu", data={"text": "d"}, headers={"X-Real-IP": "198.51.100.1"})
    assert other.status_code == 200


def test_parse_menu_extraction_failure_is_generic_500(settings) -> None:
    client = _client(settings, extractor=failing_extractor())
    resp = client.post("/api/parse-menu", data={"text": "Suppe"})
    assert resp.status_code == 500
    assert resp.json() == {"error": "Die Speisekarte konnte nicht analysiert werden."}


def test_missing_api_key_is_500_with_message() -> None:
    client = _client(Settings())
    resp = client.post("/api/parse-menu", data={"text": "Suppe"})
    assert resp.status_code == 500
    assert resp.json() == {"error": "OPENAI_API_KEY ist nicht gesetzt."}


def test_suggest_allergens(settings) -> None:
    suggester = FakeSuggester()
    client = _client(settings, suggester=suggester)

    resp = client.post("/api/suggest-allergens", json={"productName": "Brezel"})
    assert resp.status_code == 200
    assert resp.json() == {"allergens": ["a"], "additives": [], "reasoning": "Mehl."}

    resp = client.post("/api/suggest-allergens", json={"productName": "x"})
    assert resp.status_code == 400

    resp = client.post("/api/suggest-allergens", json={"productName": "Brot"})
    assert resp.status_code == 429


def test_suggest_rejects_invalid_json(settings) -> None:
    client = _client(settings, suggester=FakeSuggester())
    resp = client.post("/api/suggest-allergens", content=b"{not json", headers={"content-type": "application/json"})
    assert resp.status_code == 400


def test_suggest_rejects_body_that_is_not_utf8(settings) -> None:
    suggester = FakeSuggester()
    client = _client(settings, suggester=suggester)
    resp = client.post(
        "/api/suggest-allergens",
        content=b'{"productName": "Br\xc3tchen"}',
        headers={"content-type": "application/json"},
    )
    assert resp.status_code == 400
    assert resp.json() == {"error": "Ungültiger JSON-Body."}
    assert suggester.names == []


def test_import_endpoints(settings) -> None:
    client = _client(settings)

    resp = client.post("/api/import/paste", content="Caesar Salad;A,C,D;1,4\nTomatensuppe;I;2".encode("utf-8"))
    assert resp.status_code == 200
    body = resp.json()
    assert [p["name"] for p in body["products"]] == ["Caesar Salad", "Tomatensuppe"]
    assert body["warnings"] == []

    csv_text = "Name,Allergene,Zusatzstoffe\nWiener Schnitzel,\"A,C,G\",\n,X,2\n"
    resp = client.post("/api/import/csv", files={"file": ("produkte.csv", csv_text.encode("utf-8"), "text/csv")})
    body = resp.json()
    assert [p["name"] for p in body["products"]] == ["Wiener Schnitzel"]
    assert body["warnings"] == ["Zeile 3 wurde übersprungen: Produktname fehlt."]

    resp = client.post("/api/import/paste", data={"text": " "})
    assert resp.status_code == 400


def test_retry_after_seconds_rounds_up() -> None:
    assert retry_after_seconds(1) == 1
    assert retry_after_seconds(1_001) == 2
    assert retry_after_seconds(0) == 1
