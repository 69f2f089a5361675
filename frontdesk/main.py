"""Front desk visitor sign-in/sign-out service.

This app provides:
- Visitor registration, sign-in and sign-out with dependents
- Ban/unban and password-gated visit history with CSV export
- Startup integrity check with restore from the latest daily snapshot
- Daily store snapshots and a data-retention compliance cleanup
"""

from frontdesk.application_factory import STATE_EXTENSION_KEY, create_app
from frontdesk.services.bootstrap import run_server


def main():
    """Build the app, run startup steps, then serve HTTP."""
    app = create_app()
    state = app.extensions[STATE_EXTENSION_KEY]
    run_server(
        app,
        host=app.config["WEB_HOST"],
        port=app.config["WEB_PORT"],
        log_action=state["log_action"],
        log_exception=state["log_exception"],
    )


if __name__ == "__main__":
    main()
