"""Example: drive the worker client core without any UI.

Logs in against a running API, prints the task board and clocks in/out once.
Controllers stay thin on the server; here the same is true for the client:
everything a screen would need lives in TaskBoard and WorkerClock.
"""

import os
import sys

from dotenv import load_dotenv

from src.farm_workflow.farm_workflow.auth.guard import AuthGuard
from src.farm_workflow.farm_workflow.auth.session import SessionStore
from src.farm_workflow.farm_workflow.client.api import FarmApiClient
from src.farm_workflow.farm_workflow.client.settings import ClientSettings
from src.farm_workflow.farm_workflow.core.exceptions import AuthExpired, DomainError
from src.farm_workflow.farm_workflow.logging_setup import setup_logging
from src.farm_workflow.farm_workflow.submissions.board import TaskBoard
from src.farm_workflow.farm_workflow.attendance.synchronizer import WorkerClock


def main():
    load_dotenv(override=False)
    setup_logging()
    settings = ClientSettings.load()

    guard = AuthGuard(SessionStore(), on_expired=lambda entry: print(f"-> redirect to {entry}"))
    with FarmApiClient(settings.api_base_url, guard, timeout=settings.http_timeout_seconds) as api:
        try:
            session = api.login(
                os.getenv("DEMO_EMAIL", "worker@farm.local"),
                os.getenv("DEMO_PASSWORD", "worker123"),
            )
        except DomainError as e:
            print(f"Login failed: {e}")
            return 1
        print(f"Logged in as {session.full_name} ({session.role.value if session.role else '?'})")

        board = TaskBoard(api)
        for card in board.refresh():
            action = card.gating.action_label or "-"
            print(f"[{action:>8}] {card.task.title}: {card.gating.banner or card.task.status.value}")

        with WorkerClock(api, worker_id=session.user_id, poll_interval=settings.attendance_poll_seconds) as clock:
            try:
                state = clock.clock_out() if clock.state.clocked_in else clock.clock_in()
            except AuthExpired:
                return 1
            print(f"Clocked in: {state.clocked_in} (elapsed {clock.elapsed})")
    return 0


if __name__ == "__main__":
    sys.exit(main())
