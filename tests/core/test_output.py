"""Tests for loguru setup and the Log page sink."""

from loguru import logger

from subtune.core.output import attach_ui_sink, detach_ui_sink, get_ui_lines, setup_loguru


class TestUiSink:
    """The UI sink collects colored lines while attached."""

    def test_lines_are_collected_with_color(self):
        seen = []
        attach_ui_sink(lambda line, color: seen.append((line, color)), level="DEBUG")
        try:
            logger.warning("mpv restarted")
        finally:
            detach_ui_sink()

        line, color = seen[-1]
        assert "WARNING: mpv restarted" in line
        assert color == "yellow"
        assert get_ui_lines()[-1] == (line, color)

    def test_detached_sink_stops_collecting(self):
        attach_ui_sink(level="DEBUG")
        detach_ui_sink()
        before = len(get_ui_lines())

        logger.error("not shown")

        assert len(get_ui_lines()) == before

    def test_level_filter(self):
        seen = []
        attach_ui_sink(lambda line, color: seen.append(line), level="WARNING")
        try:
            logger.info("quiet")
            logger.error("loud")
        finally:
            detach_ui_sink()

        assert len(seen) == 1
        assert "loud" in seen[0]


class TestSetupLoguru:
    """File logging with rotation."""

    def test_creates_log_file(self, tmp_path):
        log_file = tmp_path / "logs" / "subtune.log"

        setup_loguru(log_file, level="INFO")
        logger.info("hello file")
        logger.remove()

        assert "hello file" in log_file.read_text(encoding="utf-8")
