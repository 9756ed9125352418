"""CLI context: resolved options and manager construction."""

from dataclasses import dataclass
from pathlib import Path

from modelsync import ModelManager
from modelsync.cli.parsing import load_entity_specs
from modelsync.exceptions import ConfigurationError
from modelsync.fixtures import ProgressCallback


@dataclass
class CLIContext:
    """Shared context for CLI commands."""

    database_url: str
    models_file: Path | None
    fixture_dir: Path | None
    echo: bool
    json_output: bool

    def get_manager(self, on_populate: ProgressCallback | None = None) -> ModelManager:
        """Create a manager initialized with the entities of the models file.

        Raises:
            ConfigurationError: If no models file was given
        """
        if self.models_file is None:
            raise ConfigurationError(
                "No models file given. Use --models or set MODELSYNC_MODELS_FILE."
            )
        manager = ModelManager(
            self.database_url,
            echo=self.echo,
            fixture_dir=self.fixture_dir,
            on_populate=on_populate,
        )
        manager.initialize(load_entity_specs(self.models_file))
        return manager
