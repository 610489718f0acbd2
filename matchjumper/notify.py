"""Pushover alerts for errors collected during a CLI run."""

from __future__ import annotations

import os

import requests

PUSHOVER_URL = "https://api.pushover.net/1/messages.json"
MAX_MESSAGE_LENGTH = 1024  # Pushover's limit


def notify_run_errors(job: str, errors: list[str]) -> bool:
    """Alert about the errors one run of ``job`` collected.

    Needs PUSHOVER_USER_KEY and PUSHOVER_API_TOKEN in the environment.
    Returns True only when an alert was delivered; a clean run, missing
    credentials and a failed delivery all return False.
    """
    if not errors:
        return False

    user_key = os.environ.get("PUSHOVER_USER_KEY", "")
    api_token = os.environ.get("PUSHOVER_API_TOKEN", "")
    if not user_key or not api_token:
        print("  Pushover not configured (set PUSHOVER_USER_KEY and PUSHOVER_API_TOKEN)")
        return False

    title = f"Match Jumper: {job}"
    summary = "\n".join(f"- {e}" for e in errors)
    message = f"{job} finished with {len(errors)} error(s):\n\n{summary}"
    try:
        resp = requests.post(
            PUSHOVER_URL,
            data={
                "token": api_token,
                "user": user_key,
                "title": title,
                "message": message[:MAX_MESSAGE_LENGTH],
            },
            timeout=10,
        )
        resp.raise_for_status()
    except requests.RequestException as e:
        print(f"  Pushover alert for {job} not delivered: {e}")
        return False

    print(f"  Pushover alert sent for {job} ({len(errors)} error(s))")
    return True
