# run_refresh_task.py
import json
import logging

# Initializes the Flask app, the database and the registry
print("--- Initializing Flask app and database ---")
from staking_api.app import close_services
from staking_api.main import app

logger = logging.getLogger(__name__)


def run_task_manually():
    print("\n--- Manually executing one staking refresh batch ---")

    try:
        result = app.extensions["staking_api"].refresh_service.refresh_all()

        print("\n--- TASK COMPLETED ---")
        print(json.dumps([outcome.to_dict() for outcome in result.outcomes], indent=2))
        if result.failed:
            print(f"\n{len(result.failed)} update(s) failed")
    except Exception as e:
        print("\n--- TASK FAILED WITH A CRITICAL EXCEPTION ---")
        logger.exception(e)
    finally:
        close_services(app)


if __name__ == "__main__":
    run_task_manually()
