import logging

import gunicorn_conf


def test_export_timeout_is_generous():
    assert gunicorn_conf.timeout >= 300
    assert gunicorn_conf.worker_class == "uvicorn.workers.UvicornWorker"


def test_warns_when_in_process_scheduler_meets_several_workers(monkeypatch, caplog):
    monkeypatch.setenv("ORPHAN_CLEANUP_SCHEDULE", "true")
    monkeypatch.setattr(gunicorn_conf, "workers", 3)

    with caplog.at_level(logging.WARNING, logger="gunicorn.conf"):
        gunicorn_conf.on_starting(server=None)

    assert "cleanup_orphaned_files" in caplog.text


def test_single_worker_scheduler_is_quiet(monkeypatch, caplog):
    monkeypatch.setenv("ORPHAN_CLEANUP_SCHEDULE", "true")
    monkeypatch.setattr(gunicorn_conf, "workers", 1)

    with caplog.at_level(logging.WARNING, logger="gunicorn.conf"):
        gunicorn_conf.on_starting(server=None)

    assert "cleanup_orphaned_files" not in caplog.text
