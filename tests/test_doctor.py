from __future__ import annotations

from fakes import ContextStore, FakeFolder, FakeMessage

from dmail.config import ImapConfig, Settings, SmtpConfig
from dmail.errors import SessionError
from dmail.services import run_doctor_checks


def _by_name(checks: list[dict[str, str]]) -> dict[str, dict[str, str]]:
    return {check["check"]: check for check in checks}


def test_doctor_without_accounts(settings: Settings) -> None:
    checks = _by_name(run_doctor_checks(settings))

    assert checks["python_version"]["status"] == "ok"
    assert checks["template_dir"]["status"] == "warn"
    assert checks["imap"]["detail"] == "IMAP account is not configured"
    assert checks["smtp"]["status"] == "warn"


def test_doctor_counts_messages_in_configured_folder(settings: Settings) -> None:
    folder = FakeFolder("INBOX", [FakeMessage(), FakeMessage()])
    settings.imap = ImapConfig(host="imap.example.com", username="me@example.com", password="x")
    settings.smtp = SmtpConfig(host="smtp.example.com", username="me@example.com", password="x")
    settings.template_dir.mkdir(parents=True)

    checks = _by_name(run_doctor_checks(settings, store_factory=lambda config: ContextStore({"INBOX": folder})))

    assert checks["template_dir"]["status"] == "ok"
    assert checks["imap"]["status"] == "ok"
    assert checks["imap"]["detail"] == "me@example.com@imap.example.com:993 INBOX=2"
    assert folder.close_calls == 1
    assert checks["smtp"]["detail"] == "me@example.com@smtp.example.com:465"


def test_doctor_reports_connection_failure(settings: Settings) -> None:
    settings.imap = ImapConfig(host="imap.example.com", username="me@example.com", password="x")

    def failing_store(config: ImapConfig) -> ContextStore:
        raise SessionError("Creating session finished with the error: timed out")

    checks = _by_name(run_doctor_checks(settings, store_factory=failing_store))

    assert checks["imap"]["status"] == "warn"
    assert "timed out" in checks["imap"]["detail"]


def test_doctor_closes_folder_when_count_fails(settings: Settings, monkeypatch) -> None:  # noqa: ANN001
    folder = FakeFolder("INBOX", [FakeMessage()])
    settings.imap = ImapConfig(host="imap.example.com", username="me@example.com", password="x")

    def broken_count() -> int:
        raise OSError("STATUS timed out")

    monkeypatch.setattr(folder, "message_count", broken_count)

    checks = _by_name(run_doctor_checks(settings, store_factory=lambda config: ContextStore({"INBOX": folder})))

    assert checks["imap"]["status"] == "warn"
    assert "STATUS timed out" in checks["imap"]["detail"]
    assert folder.close_calls == 1
