import uvicorn

from imghost.config import Settings
from imghost.main import create_app


def main(argv: list[str] | None = None) -> None:
    """Serve the app, reading settings from the command line and environment."""
    app_settings = Settings(_cli_parse_args=argv if argv is not None else True, _cli_prog_name="imghost")
    uvicorn.run(
        create_app(app_settings),
        host=app_settings.host,
        port=app_settings.port,
        log_level=app_settings.log_level.lower(),
    )
