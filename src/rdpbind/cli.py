"""
Command-line entry point.

Usage examples
--------------

$ rdpbind "A1 B2 C3 D4 E5 F6" "RDP Certificate"
$ rdpbind --cert-thumbprint A1B2C3D4E5F6 --cert-friendly-name "RDP Certificate"
$ rdpbind A1B2C3D4E5F6 "RDP Certificate" --provider windows --persist-key
$ rdpbind "" "RDP Certificate" --import-pem rdp.pem
$ rdpbind --list-certificates --provider windows

The exit code tells the calling ACME client what happened:
0 success, 1 certificate not found, 2 friendly name mismatch,
3 general setting, 4 listener, 5 service, 6 persisted key failure.
"""

from pathlib import Path
from typing import Annotated

import typer

from rdpbind import __version__
from rdpbind.config import Settings, get_settings
from rdpbind.core.logging import configure_logger, intercept_standard_logging, logger
from rdpbind.core.run_context import bound_run_id
from rdpbind.infrastructure import InfrastructureFactory
from rdpbind.infrastructure.implementations.local import LocalCertificateStore
from rdpbind.models.binding import BindingResult
from rdpbind.models.errors import (
    BindingError,
    BindingOutcome,
    StoreError,
    ValidationError,
)
from rdpbind.services.certificate_binder import CertificateBinder

app = typer.Typer(
    add_completion=False,
    help="Bind an issued TLS certificate to the Remote Desktop listener.",
)


def report(result: BindingResult) -> None:
    """Write the confirmation line to the log and to the console."""
    logger.info(result.message)
    typer.echo(result.message)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit()


def list_certificates(settings: Settings) -> int:
    """Print one tab-separated line per certificate in the store."""
    with bound_run_id():
        store = InfrastructureFactory.from_settings(settings).get_certificate_store()
        try:
            certificates = store.list_certificates()
        except StoreError as e:
            logger.error(str(e))
            return BindingOutcome.CERTIFICATE_NOT_FOUND.exit_code

        for certificate in certificates:
            fields = (certificate.thumbprint, certificate.friendly_name, certificate.subject)
            typer.echo("\t".join(fields))
        return BindingOutcome.SUCCESS.exit_code


def run(
    settings: Settings,
    identifier: str,
    expected_label: str,
    persist_key: bool = False,
    restart_service: bool = False,
    import_pem: Path | None = None,
) -> int:
    """
    Run one binding and translate its outcome into an exit code.

    Args:
        settings: Effective settings (provider, service name, atomic mode)
        identifier: Certificate thumbprint, taken from the imported
            certificate when blank and import_pem is given
        expected_label: Expected friendly name
        persist_key: Also write the persisted registry key
        restart_service: Also restart the Remote Desktop service
        import_pem: PEM certificate added to the local certificate store,
            labelled expected_label, before binding

    Returns:
        Process exit code
    """
    with bound_run_id():
        factory = InfrastructureFactory.from_settings(settings)
        binder = CertificateBinder.from_factory(
            factory,
            service_name=settings.service_name,
            atomic=settings.atomic_apply,
        )

        if import_pem is not None:
            store = binder.certificate_store
            if not isinstance(store, LocalCertificateStore):
                logger.error(
                    "--import-pem needs the local provider, not "
                    f"{settings.infrastructure_provider}"
                )
                return BindingOutcome.CERTIFICATE_NOT_FOUND.exit_code
            try:
                imported = store.import_pem(import_pem, expected_label)
            except StoreError as e:
                logger.error(str(e))
                return BindingOutcome.CERTIFICATE_NOT_FOUND.exit_code
            if not binder.normalize(identifier):
                identifier = imported.thumbprint

        try:
            result = binder.bind(identifier, expected_label)
            if persist_key:
                binder.apply_persisted_key(result.thumbprint)
            if restart_service:
                binder.restart_service()
        except ValidationError as e:
            logger.warning(e.message)
            return e.outcome.exit_code
        except BindingError as e:
            logger.error(e.message)
            return e.outcome.exit_code

        report(result)
        return result.exit_code


@app.command()
def main(
    cert_thumbprint: Annotated[
        str, typer.Argument(help="Thumbprint of the certificate (spaces allowed)")
    ] = "",
    cert_friendly_name: Annotated[
        str, typer.Argument(help="Expected friendly name of the certificate")
    ] = "",
    thumbprint_option: Annotated[
        str | None,
        typer.Option("--cert-thumbprint", help="Named form of CERT_THUMBPRINT"),
    ] = None,
    friendly_name_option: Annotated[
        str | None,
        typer.Option("--cert-friendly-name", help="Named form of CERT_FRIENDLY_NAME"),
    ] = None,
    provider: Annotated[
        str | None,
        typer.Option(help="Infrastructure provider (local, windows)"),
    ] = None,
    base_dir: Annotated[
        str | None,
        typer.Option(help="Base directory of the local machine model"),
    ] = None,
    persist_key: Annotated[
        bool, typer.Option(help="Also write the persisted registry key")
    ] = False,
    restart_service: Annotated[
        bool, typer.Option(help="Restart the Remote Desktop service afterwards")
    ] = False,
    import_pem: Annotated[
        Path | None,
        typer.Option(
            help="Import this PEM certificate into the local store under "
            "CERT_FRIENDLY_NAME before binding (local provider only)"
        ),
    ] = None,
    list_only: Annotated[
        bool,
        typer.Option(
            "--list-certificates", help="List the certificates in the store and exit"
        ),
    ] = False,
    atomic: Annotated[
        bool | None,
        typer.Option(
            "--atomic/--no-atomic",
            help="Restore already updated targets when a later one fails",
        ),
    ] = None,
    log_level: Annotated[str | None, typer.Option(help="Override LOG_LEVEL")] = None,
    version: Annotated[
        bool,
        typer.Option(
            "--version", callback=_version_callback, is_eager=True, help="Show version"
        ),
    ] = False,
) -> None:
    """Apply a certificate from the machine store to Remote Desktop."""
    if log_level:
        configure_logger(log_level)
    intercept_standard_logging()

    overrides: dict[str, object] = {}
    if provider is not None:
        overrides["infrastructure_provider"] = provider
    if base_dir is not None:
        overrides["infrastructure_base_dir"] = base_dir
    if atomic is not None:
        overrides["atomic_apply"] = atomic
    settings = get_settings().model_copy(update=overrides)

    if list_only:
        raise typer.Exit(code=list_certificates(settings))

    identifier = thumbprint_option if thumbprint_option is not None else cert_thumbprint
    expected_label = (
        friendly_name_option if friendly_name_option is not None else cert_friendly_name
    )

    exit_code = run(
        settings,
        identifier,
        expected_label,
        persist_key=persist_key,
        restart_service=restart_service,
        import_pem=import_pem,
    )
    raise typer.Exit(code=exit_code)


if __name__ == "__main__":
    app()
