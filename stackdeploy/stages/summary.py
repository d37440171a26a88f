"""Human-readable deployment report"""

from typing import List, Optional

from rich.console import Console

from stackdeploy.core.config_loader import DeploySettings
from stackdeploy.core.pipeline import DeploymentContext, Stage
from stackdeploy.logger import console as default_console
from stackdeploy.models.deployment import BackupRecord, DeploymentRequest
from stackdeploy.models.results import DeploymentOutcome


def render_summary(
    request: DeploymentRequest,
    settings: DeploySettings,
    backup: Optional[BackupRecord] = None,
    backup_failed: bool = False,
) -> List[str]:
    """Plain-text summary lines for a successful deployment."""
    lines = [
        "🎉 Deployment completed successfully!",
        "",
        f"Environment: {request.environment.value}",
        f"Domain: {request.domain}",
        "",
        f"🌐 Application: {request.app_url}",
        f"🔧 API: {request.api_url}",
    ]
    if request.dev_server_url:
        lines.append(f"⚡ Vite Dev Server: {request.dev_server_url}")

    app = settings.services.app
    lines += [
        "",
        "Useful commands:",
        "📊 View logs: docker compose logs -f [service_name]",
        f"🔧 Laravel commands: docker compose exec {app} php artisan [command]",
        "🛑 Stop application: docker compose down",
        "🔄 Restart: docker compose restart [service_name]",
    ]

    if request.is_production:
        if backup:
            location = str(backup.path)
        elif backup_failed:
            location = "failed (see warnings)"
        else:
            location = "none (no previous state)"
        lines += [
            "",
            f"📁 Backup location: {location}",
            f"🔐 Environment file: {settings.env_files.production}",
        ]
    return lines


def print_outcome(
    outcome: DeploymentOutcome, console: Optional[Console] = None
) -> None:
    """Print collected warnings and, on failure, the failure summary."""
    console = console or default_console

    if outcome.warnings:
        console.print(f"\n[yellow]⚠ {len(outcome.warnings)} warning(s):[/yellow]")
        for warning in outcome.warnings:
            console.print(f"  [dim]• {warning}[/dim]")

    if not outcome.success:
        console.print(f"\n[bold red]✗ {outcome.summary}[/bold red]")


class SummaryReporter(Stage):
    name = "summary"
    title = "Deployment Summary"

    def run(self, ctx: DeploymentContext):
        lines = render_summary(
            ctx.request, ctx.settings, ctx.backup, backup_failed=ctx.backup_failed
        )
        ctx.summary = "\n".join(lines)
        ctx.logger.log(ctx.summary)

        if not ctx.logger.verbose:
            default_console.print()
            for line in lines:
                default_console.print(line, markup=False, highlight=False)
        return None
