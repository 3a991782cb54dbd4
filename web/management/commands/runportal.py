from __future__ import annotations

from argparse import ArgumentParser
from typing import Any

from django.core.management import call_command
from django.core.management.base import BaseCommand

from web import backend_client
from web.config import settings
from web.domain.errors import ErrorKind


class Command(BaseCommand):
    """Check that the backend answers and start the development server.

    Mainly used in Docker, where the portal container may come up before the
    backend does. An unreachable backend is reported but does not stop the
    server.
    """

    help = "Check backend reachability and start the development server."

    def add_arguments(self, parser: ArgumentParser) -> None:
        """Add command arguments."""
        parser.add_argument("addrport", nargs="?", default="0.0.0.0:8000")

    def handle(self, *args: Any, **options: Any) -> None:
        """Command entry point."""
        addrport: str = str(options.get("addrport", "0.0.0.0:8000"))
        self.stdout.write(self.style.NOTICE(f"Checking backend at {settings.api_base_url}..."))

        # Any HTTP answer (401 included) means the backend is up.
        resp = backend_client.request_json(method="GET", path="/Auth/profile")
        if resp.error is not None and resp.error.kind == ErrorKind.NETWORK_ERROR and resp.status is None:
            self.stdout.write(self.style.WARNING(resp.error.error))
        else:
            self.stdout.write(self.style.SUCCESS("Backend reachable."))

        self.stdout.write(self.style.NOTICE(f"Starting server on {addrport}..."))
        call_command("runserver", addrport)
