import json
from functools import partial

import httpx
import pytest

import main
from optimize_utils import OptimizeError, generate_optimized_prompt
from prompt_builder import PromptFields, apply_quick_starter, build_prompt
from prompts_lib import QUICK_STARTERS


@pytest.fixture
def api_key(monkeypatch, env_path):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
    return "sk-env"


@pytest.fixture
def fake_optimizer(monkeypatch):
    calls = []
    state = {"result": "a polished prompt"}

    def fake(idea, fields, api_key, **kwargs):
        calls.append({"idea": idea, "fields": fields, "api_key": api_key, **kwargs})
        if isinstance(state["result"], Exception):
            raise state["result"]
        return state["result"]

    monkeypatch.setattr(main, "generate_optimized_prompt", fake)
    return calls, state


FORM = {
    "subject": "red fox",
    "action": "leaping",
    "environment": "snowy forest",
    "stylePreset": "cinematic",
    "mood": "playful",
    "customTags": ["frost", "frost"],
    "materials": ["glass"],
    "aspectRatio": "3:2",
    "quality": "standard",
    "seed": "12a",
}


@pytest.mark.parametrize("method", ["GET", "PUT", "DELETE", "PATCH", "TRACE", "PURGE"])
def test_optimize_rejects_other_methods(client, method):
    response = client.request(method, "/api/optimize")
    assert response.status_code == 405
    assert response.json() == {"error": "Method not allowed"}


def test_other_routes_keep_default_method_error(client):
    response = client.get("/api/build")
    assert response.status_code == 405
    assert response.json() == {"detail": "Method Not Allowed"}


def test_optimize_requires_api_key(client):
    response = client.post("/api/optimize", json={"idea": "fox"})
    assert response.status_code == 500
    assert response.json() == {"error": "Missing OPENAI_API_KEY"}


def test_optimize_missing_key_names_configured_service(client, monkeypatch):
    monkeypatch.setenv("OPTIMIZE_SERVICE", "grok")
    response = client.post("/api/optimize", json={"idea": "fox"})
    assert response.json() == {"error": "Missing GROK_API_KEY"}


@pytest.mark.parametrize("body", [{}, {"idea": ""}, {"idea": 3}, {"fields": {"mood": "x"}}, ["idea"]])
def test_optimize_missing_idea(client, api_key, fake_optimizer, body):
    response = client.post("/api/optimize", json=body)
    assert response.status_code == 400
    assert response.json() == {"error": "Missing 'idea' (string)"}
    assert fake_optimizer[0] == []


def test_optimize_invalid_json_counts_as_missing_idea(client, api_key):
    response = client.post("/api/optimize", content=b"{not json", headers={"Content-Type": "application/json"})
    assert response.status_code == 400
    assert response.json() == {"error": "Missing 'idea' (string)"}


def test_optimize_success(client, api_key, fake_optimizer):
    calls, _ = fake_optimizer
    response = client.post("/api/optimize", json={"idea": "fox", "fields": {"mood": "playful"}})

    assert response.status_code == 200
    assert response.json() == {"prompt": "a polished prompt"}
    assert calls == [
        {
            "idea": "fox",
            "fields": {"mood": "playful"},
            "api_key": "sk-env",
            "service": "openai",
            "model": "gpt-4o-mini",
            "timeout": 30.0,
        }
    ]


def test_optimize_surfaces_upstream_error(client, api_key, fake_optimizer):
    _, state = fake_optimizer
    state["result"] = OptimizeError('{"error": {"message": "quota"}}', status_code=429)

    response = client.post("/api/optimize", json={"idea": "fox"})

    assert response.status_code == 500
    assert response.json() == {"error": '{"error": {"message": "quota"}}'}


def test_settings_file_overrides_environment(client, env_path, monkeypatch, fake_optimizer):
    calls, _ = fake_optimizer
    monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
    env_path.write_text('OPENAI_API_KEY="sk-file"\nOPTIMIZE_MODEL=gpt-test\nOPTIMIZE_TIMEOUT=5\n')

    client.post("/api/optimize", json={"idea": "fox"})

    assert calls[0]["api_key"] == "sk-file"
    assert calls[0]["model"] == "gpt-test"
    assert calls[0]["timeout"] == 5.0


def test_update_settings_writes_env_file(client, env_path):
    env_path.write_text("# keys\nOTHER=1\nOPENAI_API_KEY=old\n")

    response = client.post("/settings", data={"service": "openai", "api_key": "sk-new"})

    assert response.json() == {"status": "ok"}
    lines = env_path.read_text().splitlines()
    assert lines[:3] == ["# keys", "OTHER=1", "OPENAI_API_KEY=sk-new"]
    assert "OPTIMIZE_SERVICE=openai" in lines


def test_build_endpoint(client):
    response = client.post("/api/build", json=FORM)

    assert response.status_code == 200
    data = response.json()
    fields = PromptFields.from_mapping(FORM)
    assert data["prompt"] == build_prompt(fields)
    assert data["prompt"] == (
        "red fox, leaping, snowy forest, materials: glass, frost, mood: playful, "
        "style: cinematic --ar 3:2 --quality standard --seed 12"
    )
    assert data["document"]["materials"] == ["glass", "frost"]
    assert data["document"]["params"]["seed"] == 12
    assert data["negative"] == fields.negative


def test_export_endpoint(client):
    response = client.post("/api/export", json=FORM)

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("application/json")
    assert 'filename="prompt.json"' in response.headers["content-disposition"]
    assert response.text.startswith("{\n  ")
    assert json.loads(response.text)["style"] == "cinematic"


def test_surprise_endpoint_keeps_free_text(client):
    response = client.post("/api/surprise", json=FORM)

    data = response.json()
    assert data["fields"]["subject"] == "red fox"
    assert data["fields"]["mood"] in main.MOODS
    assert data["prompt"].startswith("red fox, leaping")


def test_send_falls_back_without_api_key(client, fake_optimizer):
    response = client.post("/api/send", json=FORM)

    assert response.json()["source"] == "fallback"
    assert response.json()["prompt"] == build_prompt(PromptFields.from_mapping(FORM))
    assert fake_optimizer[0] == []


@pytest.mark.parametrize("result", [OptimizeError("upstream 500", status_code=500), "   "])
def test_send_falls_back_on_failure_or_blank(client, api_key, fake_optimizer, result):
    _, state = fake_optimizer
    state["result"] = result

    response = client.post("/api/send", json=FORM)

    assert response.status_code == 200
    assert response.json() == {
        "prompt": build_prompt(PromptFields.from_mapping(FORM)),
        "negative": PromptFields.from_mapping(FORM).negative,
        "source": "fallback",
    }


def test_send_uses_optimized_prompt(client, api_key, fake_optimizer):
    calls, _ = fake_optimizer

    response = client.post("/api/send", json=FORM)

    assert response.json()["source"] == "optimized"
    assert response.json()["prompt"] == "a polished prompt"
    assert calls[0]["idea"] == "red fox, leaping, snowy forest"
    assert calls[0]["fields"]["ar"] == "3:2"


def test_catalog_endpoint(client):
    data = client.get("/api/catalog").json()
    assert data["aspect_ratios"] == ["1:1", "3:2", "4:5", "16:9", "21:9", "9:16"]
    assert data["quality_tiers"] == ["draft", "standard", "high"]
    assert len(data["quick_starters"]) == 3


def test_pages_render(client):
    home = client.get("/")
    assert home.status_code == 200
    assert "Build your prompt" in home.text
    assert "What creators say" in home.text

    pricing = client.get("/pricing")
    assert pricing.status_code == 200
    assert "Choose your plan" in pricing.text
    assert "$9/mo" in pricing.text


@pytest.mark.parametrize(
    "path, route",
    [
        ("/", main.Route.HOME),
        ("#/", main.Route.HOME),
        ("/pricing", main.Route.PRICING),
        ("#/pricing", main.Route.PRICING),
        ("/pricing/", main.Route.PRICING),
        ("/unknown", main.Route.HOME),
        ("", main.Route.HOME),
    ],
)
def test_route_from_path(path, route):
    assert main.Route.from_path(path) is route


def test_page_for_route():
    assert main.page_for_route(main.Route.HOME) == "index.html"
    assert main.page_for_route(main.Route.PRICING) == "pricing.html"


def test_blank_env_file_entry_defers_to_environment(env_path, monkeypatch):
    env_path.write_text((main.BASE_DIR / ".env.example").read_text())
    monkeypatch.setenv("OPENAI_API_KEY", "sk-real")

    settings = main.optimizer_settings()

    assert settings["api_key"] == "sk-real"
    assert settings["service"] == "openai"
    assert settings["model"] == "gpt-4o-mini"


def test_quoted_blank_env_entry_defers_to_environment(env_path, monkeypatch):
    env_path.write_text('OPENAI_API_KEY=""\n')
    monkeypatch.setenv("OPENAI_API_KEY", "sk-real")

    assert main.optimizer_settings()["api_key"] == "sk-real"


def _gateway_page_client():
    def handler(request):
        return httpx.Response(200, content=b"<html>gateway</html>", headers={"Content-Type": "application/json"})

    return httpx.Client(transport=httpx.MockTransport(handler))


def test_optimize_unparseable_reply_keeps_error_shape(client, api_key, monkeypatch):
    monkeypatch.setattr(
        main, "generate_optimized_prompt", partial(generate_optimized_prompt, http_client=_gateway_page_client())
    )

    response = client.post("/api/optimize", json={"idea": "fox"})

    assert response.status_code == 500
    assert set(response.json()) == {"error"}
    assert response.json()["error"]


def test_send_falls_back_on_unparseable_reply(client, api_key, monkeypatch):
    monkeypatch.setattr(
        main, "generate_optimized_prompt", partial(generate_optimized_prompt, http_client=_gateway_page_client())
    )

    response = client.post("/api/send", json=FORM)

    assert response.status_code == 200
    assert response.json()["source"] == "fallback"
    assert response.json()["prompt"] == build_prompt(PromptFields.from_mapping(FORM))


def test_quick_starter_endpoint(client):
    title = QUICK_STARTERS[2]["title"]

    response = client.post("/api/quick-starter", json={"title": title, "fields": FORM})

    assert response.status_code == 200
    data = response.json()
    expected = apply_quick_starter(PromptFields.from_mapping(FORM), title)
    assert data["prompt"] == build_prompt(expected)
    assert data["fields"]["subject"] == "transparent dental aligner on a reflective surface"
    assert data["fields"]["lighting"] == "softbox"
    assert data["fields"]["seed"] == 12
    assert data["fields"]["customTags"] == ["frost"]


def test_quick_starter_unknown_title(client):
    response = client.post("/api/quick-starter", json={"title": "missing"})

    assert response.status_code == 404
    assert response.json() == {"error": "Unknown quick starter: missing"}
