import logging

from phpns.php.progress import LoggingProgress, NullProgress, ProgressSink


class TestNullProgress:
    def test_never_cancels(self):
        progress = NullProgress()
        progress.on_stage("Moving file...", "Foo")
        progress.on_fraction(0.5)
        assert not progress.is_cancelled()

    def test_satisfies_protocol(self):
        sink: ProgressSink = NullProgress()
        assert sink.is_cancelled() is False


class TestLoggingProgress:
    def test_logs_stage(self, caplog):
        caplog.set_level(logging.INFO, logger="phpns.php.progress")
        LoggingProgress().on_stage("Moving file...", "UserService")
        assert "Moving file... UserService" in caplog.text

    def test_empty_detail(self, caplog):
        caplog.set_level(logging.INFO, logger="phpns.php.progress")
        LoggingProgress().on_stage("Batch move completed", "")
        assert caplog.records[-1].getMessage() == "Batch move completed"

    def test_custom_level(self, caplog):
        caplog.set_level(logging.INFO, logger="phpns.php.progress")
        LoggingProgress(level=logging.DEBUG).on_stage("Moving file...", "Hidden")
        assert "Hidden" not in caplog.text

    def test_fraction_at_debug(self, caplog):
        caplog.set_level(logging.DEBUG, logger="phpns.php.progress")
        LoggingProgress().on_fraction(0.25)
        assert "Progress: 25%" in caplog.text

    def test_never_cancels(self):
        assert not LoggingProgress().is_cancelled()
