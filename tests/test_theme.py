from opsdash import theme
from streamlit.errors import StreamlitAPIException


def test_set_theme(monkeypatch):
    calls = {"config": [], "markdown": []}
    monkeypatch.setattr(theme.st, "set_page_config", lambda **kw: calls["config"].append(kw))
    monkeypatch.setattr(theme.st, "markdown", lambda body, **kw: calls["markdown"].append(body))

    theme.set_theme(page_title="Jobs", page_icon="🗂️")

    assert calls["config"][0]["page_title"] == "Jobs"
    assert calls["markdown"][0].startswith("<style>")


def test_set_theme_tolerates_repeated_page_config(monkeypatch):
    def already_set(**kw):
        raise StreamlitAPIException("set_page_config() can only be called once per app page")

    injected = []
    monkeypatch.setattr(theme.st, "set_page_config", already_set)
    monkeypatch.setattr(theme.st, "markdown", lambda body, **kw: injected.append(body))

    theme.set_theme()

    assert len(injected) == 1
