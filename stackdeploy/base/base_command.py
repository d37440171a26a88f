"""
Base Command Class

Abstract base for all stackdeploy CLI commands.
Provides common functionality and structure.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from rich.console import Console

from stackdeploy.core.config_loader import DeploySettings, load_settings
from stackdeploy.exceptions import StackDeployError
from stackdeploy.logger import DeployLogger
from stackdeploy.ui_components import show_header


class BaseCommand(ABC):
    """
    Abstract base command class.

    Provides:
    - Settings and logger initialization
    - Header display
    - Error handling and exit codes
    """

    def __init__(self, project_root: Optional[Path] = None, verbose: bool = False):
        self.verbose = verbose
        self.console = Console()
        self.project_root = Path(project_root or Path.cwd()).resolve()
        self.logger: Optional[DeployLogger] = None
        self._settings: Optional[DeploySettings] = None

    @property
    def settings(self) -> DeploySettings:
        """Project settings, loaded on first use."""
        if self._settings is None:
            self._settings = load_settings(self.project_root)
        return self._settings

    def init_logger(self, environment: str, command_name: str) -> DeployLogger:
        """
        Initialize command logger.

        Args:
            environment: Environment name used for the log directory
            command_name: Command name
        """
        self.logger = DeployLogger(
            self.settings.log_root, environment, command_name, verbose=self.verbose
        )
        return self.logger

    def show_header(
        self,
        title: str,
        subtitle: Optional[str] = None,
        details: Optional[dict] = None,
    ) -> None:
        """Show command header (skip in verbose mode)."""
        if not self.verbose:
            show_header(
                title=title, subtitle=subtitle, details=details, console=self.console
            )

    def print_success(self, message: str) -> None:
        self.console.print(f"[green]✓ {message}[/green]")

    def print_error(self, message: str) -> None:
        self.console.print(f"[red]✗ {message}[/red]")

    def print_warning(self, message: str) -> None:
        self.console.print(f"[yellow]⚠ {message}[/yellow]")

    def print_dim(self, message: str) -> None:
        self.console.print(f"[dim]{message}[/dim]")

    def print_log_location(self) -> None:
        if self.logger and self.logger.log_path:
            self.console.print(f"\n[dim]Logs saved to:[/dim] {self.logger.log_path}\n")

    @abstractmethod
    def execute(self, **kwargs) -> int:
        """
        Execute command logic.

        Returns:
            Process exit code
        """

    def run(self, **kwargs) -> None:
        """
        Run command with error handling; always exits via SystemExit.

        Args:
            **kwargs: Command arguments
        """
        try:
            exit_code = self.execute(**kwargs)
        except KeyboardInterrupt:
            self.console.print("\n[bold red]✗ Deployment interrupted![/bold red]")
            if self.logger:
                self.logger.log_error("Deployment interrupted!")
            self.print_log_location()
            raise SystemExit(1)
        except SystemExit:
            raise
        except StackDeployError as e:
            self.console.print(f"\n[bold red]✗ {e.message}[/bold red]")
            if e.context:
                self.print_dim(e.context)
            if self.logger:
                self.logger.log_error(e.message, context=e.context)
            self.print_log_location()
            raise SystemExit(1)
        except Exception as e:
            error_type = type(e).__name__
            self.console.print(f"\n[bold red]✗ {error_type}:[/bold red] {e}\n")
            if self.logger:
                self.logger.log_error(f"{error_type}: {e}")
            self.print_log_location()
            raise SystemExit(1)
        finally:
            if self.logger:
                self.logger.close()

        raise SystemExit(exit_code)
