from __future__ import annotations

import dataclasses
import logging
import time
from typing import Callable, Iterable

import click

from panopto_upload.client import Client, UploadSession
from panopto_upload.config import UploadClientConfig, load_config
from panopto_upload.domain.session import TERMINAL_STATES, SessionState, describe_state
from panopto_upload.exceptions import UploadClientError

logger = logging.getLogger(__name__)


def build_client(config: UploadClientConfig) -> Client:
    return Client(config.host, config=config)


def wait_for_processing(
    client: Client,
    session: UploadSession,
    *,
    interval_seconds: float,
    sleep: Callable[[float], None] = time.sleep,
) -> int:
    """Poll until the session reaches a terminal state and return it."""
    last_state: int | None = None
    while True:
        state = client.get_session_status(session)
        if state != last_state:
            click.echo(f"Session {session.id()}: {describe_state(state)}")
            last_state = state
        if state in TERMINAL_STATES:
            return state
        sleep(interval_seconds)


def upload_files(session: UploadSession, files: Iterable[str]) -> None:
    for path in files:
        click.echo(f"Uploading {path}")
        session.upload_file(path)


@click.command()
@click.option("--host", help="Base URL of the server, e.g. https://demo.hosted.panopto.com")
@click.option("--folder-id", required=True, help="Folder the new session uploads to")
@click.option("--client-id", help="OAuth client id")
@click.option("--client-secret", help="OAuth client secret")
@click.option("--username", help="User to authenticate as")
@click.option("--password", help="Password for --username")
@click.option("--poll", is_flag=True, help="Wait for processing to finish")
@click.option(
    "--delete-on-failure",
    is_flag=True,
    help="Delete the session if an upload fails",
)
@click.option("--log-level", help="Logging level (default from PANOPTO_LOG_LEVEL)")
@click.argument(
    "files",
    nargs=-1,
    required=True,
    type=click.Path(exists=True, dir_okay=False),
)
def main(
    host: str | None,
    folder_id: str,
    client_id: str | None,
    client_secret: str | None,
    username: str | None,
    password: str | None,
    poll: bool,
    delete_on_failure: bool,
    log_level: str | None,
    files: tuple[str, ...],
) -> None:
    """Create an upload session, upload FILES to it and finish it."""
    cfg = load_config()
    overrides = {
        "host": host,
        "client_id": client_id,
        "client_secret": client_secret,
        "username": username,
        "password": password,
        "log_level": log_level,
    }
    cfg = dataclasses.replace(
        cfg, **{name: value for name, value in overrides.items() if value is not None}
    )
    level = logging.getLevelName(cfg.log_level.upper())
    if not isinstance(level, int):
        raise click.UsageError(f"Invalid log level {cfg.log_level!r}")
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
    )
    if not cfg.host:
        raise click.UsageError("--host or PANOPTO_HOST is required")

    with build_client(cfg) as client:
        try:
            client.authenticate(
                cfg.client_id, cfg.client_secret, cfg.username, cfg.password
            )
            session = client.new_session(folder_id)
            click.echo(f"Created upload session {session.id()}")
        except UploadClientError as exc:
            raise click.ClickException(str(exc)) from exc

        try:
            upload_files(session, files)
        except UploadClientError as exc:
            if delete_on_failure:
                _delete_failed_session(client, session)
            raise click.ClickException(str(exc)) from exc

        try:
            client.finish_session(session)
            click.echo(f"Finished upload session {session.id()}")
            if poll:
                state = wait_for_processing(
                    client, session, interval_seconds=cfg.poll_interval_seconds
                )
                if state != SessionState.COMPLETE:
                    raise click.ClickException(
                        f"Session ended in state {describe_state(state)}"
                    )
        except UploadClientError as exc:
            raise click.ClickException(str(exc)) from exc


def _delete_failed_session(client: Client, session: UploadSession) -> None:
    # SessionId is only known once the server has assigned it.
    try:
        client.get_session_status(session)
        session_id = session.session_id()
        if not session_id:
            logger.warning(
                "Upload session %s has no SessionId yet; leaving it in place",
                session.id(),
            )
            return
        client.delete_session(session_id)
    except UploadClientError as exc:
        logger.error("Could not delete upload session %s: %s", session.id(), exc)
        return
    click.echo(f"Deleted session {session_id}")


if __name__ == "__main__":
    main()
