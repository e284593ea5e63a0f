"""Tests for Rich progress renderer."""

from unittest.mock import Mock, patch

from rich.console import Console
from rich.progress import Progress

from photo_organizer.rich_progress_renderer import RichProgressRenderer


class TestRichProgressRenderer:
    """Test cases for RichProgressRenderer."""

    def setup_method(self):
        """Set up test fixtures."""
        self.mock_console = Mock(spec=Console)
        self.renderer = RichProgressRenderer(console=self.mock_console)

    def test_initialization(self):
        renderer = RichProgressRenderer()
        assert renderer.console is not None
        assert renderer.progress is None
        assert renderer.task is None
        assert renderer.description == "Packaging photos..."

    def test_render_outside_context_is_noop(self):
        """Render before entering the context must not fail."""
        self.renderer.render(1, 2, "a.jpg")
        assert self.renderer.progress is None

    @patch('photo_organizer.rich_progress_renderer.Progress')
    def test_context_starts_and_stops_progress(self, mock_progress_class):
        mock_progress = Mock(spec=Progress)
        mock_progress.add_task.return_value = "task_id"
        mock_progress_class.return_value = mock_progress

        with self.renderer as renderer:
            assert renderer.progress is mock_progress
            assert renderer.task == "task_id"
            mock_progress.start.assert_called_once()

        mock_progress.stop.assert_called_once()
        assert self.renderer.progress is None
        assert self.renderer.task is None

        _, kwargs = mock_progress_class.call_args
        assert kwargs['console'] == self.mock_console
        assert kwargs['transient'] is True

    @patch('photo_organizer.rich_progress_renderer.Progress')
    def test_render_updates_task(self, mock_progress_class):
        mock_progress = Mock(spec=Progress)
        mock_progress.add_task.return_value = "task_id"
        mock_progress_class.return_value = mock_progress

        with self.renderer as renderer:
            renderer.render(3, 10, "IMG_0001.jpg")

        mock_progress.update.assert_called_once_with(
            "task_id", completed=3, total=10, current="IMG_0001.jpg"
        )

    @patch('photo_organizer.rich_progress_renderer.Progress')
    def test_progress_stopped_on_error(self, mock_progress_class):
        mock_progress = Mock(spec=Progress)
        mock_progress_class.return_value = mock_progress

        try:
            with self.renderer:
                raise RuntimeError("boom")
        except RuntimeError:
            pass

        mock_progress.stop.assert_called_once()
