"""Flask application factory."""

import json
import os
from flask import Flask
from flask_cors import CORS

from sprint_cycle_time.services.report_config import (
    DEFAULT_SPRINT_PATTERN,
    DEFAULT_STORY_POINTS_FIELD,
    DEFAULT_TRACKED_STATUSES,
    parse_status_list,
)

CONFIG_PATH = os.path.join(
    os.path.dirname(__file__), "..", "..", "config", "cycle-time-config.json"
)


def default_cycle_time_config():
    return {
        "sprintPattern": DEFAULT_SPRINT_PATTERN,
        "trackedStatuses": list(DEFAULT_TRACKED_STATUSES),
        "storyPointsField": DEFAULT_STORY_POINTS_FIELD
    }


def load_cycle_time_config(app, config_path=CONFIG_PATH):
    """Load report defaults from the config file, falling back to built-ins."""
    settings = default_cycle_time_config()

    if os.path.exists(config_path):
        try:
            with open(config_path, "r") as f:
                config = json.load(f)
            if config.get("sprintPattern"):
                settings["sprintPattern"] = config["sprintPattern"]
            statuses = parse_status_list(config.get("trackedStatuses"))
            if statuses:
                settings["trackedStatuses"] = statuses
            if config.get("storyPointsField"):
                settings["storyPointsField"] = config["storyPointsField"]
            app.logger.info(
                f"Loaded cycle time config: tracking {len(settings['trackedStatuses'])} statuses"
            )
        except (json.JSONDecodeError, IOError, AttributeError) as e:
            app.logger.warning(f"Failed to load cycle time config: {e}")
    else:
        app.logger.info("No cycle-time-config.json found, using default settings")

    app.config["CYCLE_TIME"] = settings


def create_app():
    """Create and configure the Flask application."""
    app = Flask(__name__)

    # Enable CORS for frontend
    CORS(app, resources={
        r"/api/*": {
            "origins": ["http://localhost:5173", "http://127.0.0.1:5173"],
            "methods": ["GET", "OPTIONS"],
            "allow_headers": [
                "Content-Type",
                "X-Jira-Token", "X-Jira-Email", "X-Jira-Server"
            ]
        }
    })

    # Register blueprints
    from sprint_cycle_time.app.api import cycle_time
    app.register_blueprint(cycle_time.bp)

    load_cycle_time_config(app)

    # Health check endpoint
    @app.route("/health")
    def health():
        return {"status": "ok"}

    return app
