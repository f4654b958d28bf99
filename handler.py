# handler.py
"""AWS Lambda handlers.

`handler` serves HTTP through the Mangum adapter, which translates API
Gateway events to ASGI for FastAPI. `cleanup_handler` is invoked by a
scheduled (EventBridge) rule and runs the daily purge.
"""

from dataclasses import asdict

from mangum import Mangum

from budget_api.main import create_app
from budget_api.services.cleanup import run_daily_cleanup

app = create_app()

# Create the Lambda handler
# lifespan="off" disables ASGI lifespan events which aren't needed in Lambda
handler = Mangum(app, lifespan="off")


def cleanup_handler(event, context):
    db = app.state.session_factory()
    try:
        stats = run_daily_cleanup(db, app.state.settings, app.state.storage)
    finally:
        db.close()
    result = asdict(stats)
    result["entry_cutoff"] = stats.entry_cutoff.isoformat()
    result["notification_cutoff"] = stats.notification_cutoff.isoformat()
    return result
