"""End-to-end tests of SyncOrchestrator against catalogs on disk."""
import asyncio
import logging

from i18n_sync.sync_orchestrator import SyncOrchestrator, SyncResult

SOURCE = {
    "app": {"title": "My App", "tagline": "Hello {name}"},
    "errors": {"network": "Network error", "empty": ""},
    "count": 3,
    "items": ["a", "b"],
}


def _run(orchestrator, catalog_dir, targets, translate):
    return asyncio.run(orchestrator.run(str(catalog_dir), SOURCE, targets, translate=translate))


def test_adds_placeholders_without_translation(app_config, catalog_dir, write_catalog_file, read_catalog_file):
    write_catalog_file(catalog_dir / "de.json", {"app": {"title": "Meine App"}, "legacy": "bleibt"})

    summary = _run(SyncOrchestrator(app_config), catalog_dir, ["de.json"], translate=False)

    assert summary.results["de.json"] == SyncResult(added_count=3, translated_count=0, written=True)
    assert read_catalog_file(catalog_dir / "de.json") == {
        "app": {"title": "Meine App", "tagline": ""},
        "legacy": "bleibt",
        "errors": {"network": "", "empty": ""},
    }
    assert (catalog_dir / "de.json").read_text(encoding="utf-8").endswith("}\n")


def test_translates_missing_keys(app_config, catalog_dir, write_catalog_file, read_catalog_file,
                                 fake_client_factory, no_wait_retry_policy):
    write_catalog_file(catalog_dir / "fr.json", {})
    client = fake_client_factory()

    summary = _run(
        SyncOrchestrator(app_config, client, no_wait_retry_policy), catalog_dir, ["fr.json"], translate=True
    )

    assert client.calls == [["My App", "Hello {name}", "Network error"]]
    assert read_catalog_file(catalog_dir / "fr.json") == {
        "app": {"title": "fr:My App", "tagline": "fr:Hello {name}"},
        "errors": {"network": "fr:Network error", "empty": ""},
    }
    assert summary.total_added == 4
    assert summary.total_translated == 4


def test_tasks_are_sent_in_batches(app_config, catalog_dir, write_catalog_file, fake_client_factory,
                                   no_wait_retry_policy):
    app_config.batch_size = 2
    write_catalog_file(catalog_dir / "de.json", {})
    client = fake_client_factory()

    _run(SyncOrchestrator(app_config, client, no_wait_retry_policy), catalog_dir, ["de.json"], translate=True)

    # The empty source text occupies a slot in the second batch but is never sent.
    assert client.calls == [["My App", "Hello {name}"], ["Network error"]]


def test_fallback_leaves_are_added_but_not_counted_as_translated(
        app_config, catalog_dir, write_catalog_file, read_catalog_file, fake_client_factory, no_wait_retry_policy):
    write_catalog_file(catalog_dir / "de.json", {})
    client = fake_client_factory(fail_when=lambda texts: "Network error" in texts)

    summary = _run(SyncOrchestrator(app_config, client, no_wait_retry_policy), catalog_dir, ["de.json"], True)

    assert read_catalog_file(catalog_dir / "de.json")["errors"]["network"] == "Network error"
    assert summary.results["de.json"].added_count == 4
    assert summary.results["de.json"].translated_count == 3


def test_translation_without_client_only_adds_placeholders(
        app_config, catalog_dir, write_catalog_file, read_catalog_file, caplog):
    write_catalog_file(catalog_dir / "de.json", {})

    with caplog.at_level(logging.WARNING, logger="i18n_sync"):
        summary = _run(SyncOrchestrator(app_config), catalog_dir, ["de.json"], translate=True)

    assert summary.results["de.json"].translated_count == 0
    assert read_catalog_file(catalog_dir / "de.json")["app"] == {"title": "", "tagline": ""}
    assert "OPENAI_API_KEY not set" in caplog.text


def test_up_to_date_catalog_is_not_rewritten(app_config, catalog_dir, fake_client_factory):
    path = catalog_dir / "de.json"
    original = '{"app": {"title": "A", "tagline": "B"}, "errors": {"network": "C", "empty": "D"}}'
    path.write_text(original, encoding="utf-8")
    client = fake_client_factory()

    summary = _run(SyncOrchestrator(app_config, client), catalog_dir, ["de.json"], translate=True)

    assert summary.results["de.json"] == SyncResult()
    assert path.read_text(encoding="utf-8") == original
    assert client.calls == []


def test_broken_catalog_is_skipped_and_others_continue(
        app_config, catalog_dir, write_catalog_file, read_catalog_file, caplog):
    (catalog_dir / "de.json").write_text('{"app": ', encoding="utf-8")
    (catalog_dir / "es.json").write_text('"just a string"', encoding="utf-8")
    write_catalog_file(catalog_dir / "fr.json", {})

    with caplog.at_level(logging.WARNING, logger="i18n_sync"):
        summary = _run(
            SyncOrchestrator(app_config), catalog_dir, ["de.json", "es.json", "fr.json"], translate=False
        )

    assert set(summary.skipped) == {"de.json", "es.json"}
    assert (catalog_dir / "de.json").read_text(encoding="utf-8") == '{"app": '
    assert summary.results["fr.json"].added_count == 4
    assert "de.json: skipped due to error" in caplog.text


def test_failure_during_translation_leaves_catalog_untouched(
        app_config, catalog_dir, write_catalog_file, read_catalog_file):
    class ExplodingClient:
        async def translate(self, texts, source_language, target_language):
            raise RuntimeError("unexpected client bug")

    write_catalog_file(catalog_dir / "de.json", {"app": {"title": "Meine App"}})

    summary = _run(SyncOrchestrator(app_config, ExplodingClient()), catalog_dir, ["de.json"], translate=True)

    assert "de.json" in summary.skipped
    assert read_catalog_file(catalog_dir / "de.json") == {"app": {"title": "Meine App"}}


def test_dry_run_does_not_write(app_config, catalog_dir, write_catalog_file, read_catalog_file):
    app_config.dry_run = True
    write_catalog_file(catalog_dir / "de.json", {})

    summary = _run(SyncOrchestrator(app_config), catalog_dir, ["de.json"], translate=False)

    assert summary.results["de.json"].added_count == 4
    assert summary.results["de.json"].written is False
    assert read_catalog_file(catalog_dir / "de.json") == {}


def test_second_run_adds_nothing(app_config, catalog_dir, write_catalog_file, fake_client_factory,
                                 no_wait_retry_policy):
    source = {"app": {"title": "My App"}, "errors": {"network": "Network error"}, "count": 3}
    write_catalog_file(catalog_dir / "de.json", {"count": "drei"})
    orchestrator = SyncOrchestrator(app_config, fake_client_factory(), no_wait_retry_policy)

    first = asyncio.run(orchestrator.run(str(catalog_dir), source, ["de.json"], translate=True))
    second = asyncio.run(SyncOrchestrator(app_config).run(str(catalog_dir), source, ["de.json"], translate=False))

    assert first.total_added == 2
    assert second.total_added == 0
    assert second.results["de.json"].written is False


def test_empty_source_leaf_is_reported_on_every_run(app_config, catalog_dir, write_catalog_file):
    source = {"placeholder": ""}
    write_catalog_file(catalog_dir / "de.json", {})

    first = asyncio.run(SyncOrchestrator(app_config).run(str(catalog_dir), source, ["de.json"], translate=False))
    second = asyncio.run(SyncOrchestrator(app_config).run(str(catalog_dir), source, ["de.json"], translate=False))

    assert first.total_added == 1
    assert second.total_added == 1
