"""TLS certificate check for public production domains"""

from stackdeploy.constants import DEFAULT_DOMAIN, SSL_CERT_FILES
from stackdeploy.core.pipeline import DeploymentContext, Stage
from stackdeploy.exceptions import ConfigurationError


class TlsCertificateCheck(Stage):
    name = "tls"
    title = "Setting up SSL certificates"

    def should_run(self, ctx: DeploymentContext) -> bool:
        return ctx.request.is_production and ctx.request.domain != DEFAULT_DOMAIN

    def run(self, ctx: DeploymentContext):
        ssl_dir = ctx.settings.path(ctx.settings.ssl_dir)
        missing = [name for name in SSL_CERT_FILES if not (ssl_dir / name).is_file()]
        if not missing:
            ctx.logger.success("SSL certificates found")
            return "certificates found"

        ctx.logger.warning(f"SSL certificates not found in {ctx.settings.ssl_dir}: {', '.join(missing)}")
        ctx.logger.log(
            "Options:\n"
            f"  1. Use Let's Encrypt: sudo certbot certonly --standalone -d {ctx.request.domain}\n"
            f"  2. Copy your existing certificates to {ctx.settings.ssl_dir}/\n"
            "  3. Continue without SSL (not recommended for production)"
        )

        if ctx.assume_yes or ctx.confirm("Continue without SSL?"):
            ctx.warn("Continuing without SSL certificates")
            return "continuing without certificates"

        raise ConfigurationError(
            "SSL certificates not found",
            context="Please setup SSL certificates and run again.",
        )
