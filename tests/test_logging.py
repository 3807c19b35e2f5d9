from __future__ import annotations

from loguru import logger

from sgecluster.logging import LogConfig, setup_logging, teardown_logging


class TestSetupLogging:
    def test_file_handler_writes_context(self, tmp_path):
        log_file = tmp_path / "logs" / "sgecluster.log"
        ids = setup_logging(LogConfig(console=False, file=str(log_file)))
        try:
            logger.bind(component="disks", disk="cosmos-sge-mm-data").info("Deleted disk")
        finally:
            teardown_logging(ids)

        line = log_file.read_text().strip()
        assert "component=disks disk=cosmos-sge-mm-data" in line
        assert line.endswith("Deleted disk")

    def test_console_only(self):
        ids = setup_logging(LogConfig())
        teardown_logging(ids)
        assert len(ids) == 1
