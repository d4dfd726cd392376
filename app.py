"""Entry point: ``python app.py`` for local runs, ``flask --app app auto-penalize`` for the sweep."""

from src.team_attendance.team_attendance.main import create_app

app = create_app()

if __name__ == "__main__":
    app.run(debug=bool(app.config.get("DEBUG")))
