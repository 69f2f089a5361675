"""Application bootstrap/run helpers."""


def run_boot_steps(boot_steps, *, status, log_action, log_exception):
    """Run named startup steps in order; return the names of failed steps.

    A failing step is logged and recorded as ``last_error`` but does not stop
    later steps, so the process comes up in a degraded state instead of
    exiting.
    """
    failed = []
    for step_name, step_func in boot_steps:
        try:
            step_func()
        except Exception as exc:
            log_exception(f"boot_step/{step_name}", exc)
            status.update_status("last_error", f"Startup step {step_name} failed: {str(exc)[:500]}")
            failed.append(step_name)
    return failed


def run_server(app, *, host, port, log_action, log_exception):
    """Start the Flask server after boot steps have run."""
    log_action("boot-ready", f"host={host} port={port}")
    try:
        app.run(host=host, port=port)
    except Exception as exc:
        log_exception("boot_step/app.run", exc, level="critical")
        raise
