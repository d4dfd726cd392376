from __future__ import annotations

import hmac

import click
from flask import Flask, current_app, jsonify, request

from ..common.web import error, json_errors
from ..container import Container


def _secret_ok(header_value: str | None) -> bool:
    secret = current_app.config.get("CRON_SECRET") or ""
    # An unset secret locks the route instead of opening it.
    if not secret or not header_value:
        return False
    return hmac.compare_digest(secret.encode("utf-8"), header_value.encode("utf-8"))


def register(app: Flask, container: Container) -> None:
    @app.route("/cron/auto-penalize", methods=["POST"], endpoint="cron_auto_penalize")
    @json_errors
    def cron_auto_penalize():
        if not _secret_ok(request.headers.get("x-cron-secret")):
            return error("unauthorized", 401)
        results = container.auto_penalty_service.sweep()
        return jsonify({"success": True, "results": [r.to_dict() for r in results]})

    @app.cli.command("auto-penalize")
    def auto_penalize_command():
        """Run the unvoted-penalty sweep once."""
        results = container.auto_penalty_service.sweep()
        for r in results:
            click.echo(f"event {r.event_id}: penalized {r.penalized}")
        click.echo(f"done ({len(results)} events)")
