"""
Application entry point — wires dependencies and runs one enrollment.

Composition root: resolves the state directory and node identity, builds
the EnrollmentConfig, creates concrete adapters, and runs the pipeline.

This is the ONLY place where concrete classes are instantiated and the
only place that looks at the process environment.

Responsibilities:
  1. Configure structlog
  2. Load and validate configuration from environment
  3. Resolve state directory + node identifier (local state collaborators)
  4. Create concrete adapters (HTTP client + decoder + store)
  5. Run the pipeline within a logging execution context
"""

from __future__ import annotations

import logging
import sys

import structlog
from railway import ErrorCode, LoggingExecutionContext
from railway.result import Result

from ant_enroll.adapters.chain_store import PemChainStore
from ant_enroll.adapters.http_client import HttpEnrollmentClient
from ant_enroll.adapters.local_state import load_or_create_node_id, resolve_state_directory
from ant_enroll.adapters.pem_decoder import PemBundleDecoder
from ant_enroll.config import AppSettings
from ant_enroll.domain.models import EnrollmentConfig
from ant_enroll.pipeline import run_enrollment


def configure_structlog(log_level: str = "INFO") -> None:
    """Configure structlog for human-readable console output."""
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, log_level.upper(), logging.INFO)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def build_enrollment_config(settings: AppSettings) -> Result[EnrollmentConfig]:
    """
    Turn settings into an EnrollmentConfig.

    Creates the state directory and reads (or creates) the node
    identifier stored in it.
    """
    storage = settings.storage
    enrollment = settings.enrollment
    return resolve_state_directory(storage.directory, storage.dir_name).flat_map(
        lambda state_dir: load_or_create_node_id(state_dir / storage.id_file).map(
            lambda node_id: EnrollmentConfig(
                endpoint=enrollment.url,
                identity_tag=node_id,
                output_directory=state_dir,
                timeout_seconds=enrollment.timeout_seconds,
                skip_server_verification=enrollment.skip_server_verification,
                user_agent_prefix=enrollment.user_agent_prefix,
                certificate_filename=storage.certificate_file,
            )
        )
    )


def read_payload(settings: AppSettings) -> Result[bytes]:
    """Request body: the payload file's bytes, or empty when none is configured."""
    payload_file = settings.enrollment.payload_file
    if payload_file is None:
        return Result.success(b"")
    return Result.from_computation(
        payload_file.read_bytes,
        ErrorCode.CONFIGURATION_ERROR,
        f"Cannot read enrollment payload from {payload_file}",
    )


def _create_adapters(
    config: EnrollmentConfig,
) -> tuple[HttpEnrollmentClient, PemBundleDecoder, PemChainStore]:
    """Instantiate the concrete adapters for one enrollment."""
    client = HttpEnrollmentClient.from_config(config)
    decoder = PemBundleDecoder()
    store = PemChainStore(config.output_path)
    return client, decoder, store


def enroll(config: EnrollmentConfig, payload: bytes) -> Result[int]:
    """Run the pipeline once with freshly created adapters."""
    client, decoder, store = _create_adapters(config)
    return run_enrollment(payload, client, decoder, store)


def run(settings: AppSettings) -> Result[int]:
    """Resolve configuration and payload, then enroll within a logging context."""
    ctx = LoggingExecutionContext(operation="NodeEnrollment")
    return ctx.execute(
        lambda: Result.combine(
            build_enrollment_config(settings),
            read_payload(settings),
            lambda config, payload: (config, payload),
        ).flat_map(lambda pair: enroll(*pair))
    )


def main() -> None:
    """Load settings, enroll, and exit 0 on success or 1 on failure."""
    try:
        settings = AppSettings()
    except Exception as e:
        print(f"FATAL: Configuration error: {e}", file=sys.stderr)  # noqa: T201
        sys.exit(1)

    configure_structlog(settings.log_level)
    log = structlog.get_logger()

    log.info(
        "app.starting",
        version="0.1.0",
        endpoint=settings.enrollment.url,
        log_level=settings.log_level,
    )

    result = run(settings)

    if result.is_success():
        log.info("app.enrolled", certificates_stored=result.value())
        return

    failure = result.error()
    log.error(
        "app.enrollment_failed",
        code=failure.code.value,
        reason=failure.reason.value if failure.reason is not None else None,
        failure=failure.message,
    )
    sys.exit(1)


if __name__ == "__main__":
    main()
