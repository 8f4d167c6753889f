from flask import Flask, jsonify
from flask_cors import CORS
from werkzeug.exceptions import RequestEntityTooLarge
import logging
import os

from combiner import CombinerConfig
from combiner.formatting import format_file_size
from routes.merge_pdf import merge_pdf_bp, init_session

# multipart framing on top of the file bytes themselves
REQUEST_OVERHEAD = 1024 * 1024


def create_app(config=None, backend=None):
    config = config or CombinerConfig.from_env()

    app = Flask(__name__)
    CORS(app)

    app.config["COMBINER"] = config
    app.config["MAX_CONTENT_LENGTH"] = config.max_total_size + REQUEST_OVERHEAD

    init_session(app, config, backend=backend)
    app.register_blueprint(merge_pdf_bp)

    @app.errorhandler(RequestEntityTooLarge)
    def too_large(e):
        limit = format_file_size(config.max_total_size)
        return jsonify({"error": f"Total size would exceed {limit} limit"}), 413

    # =========================
    # HEALTH CHECK
    # =========================
    @app.route("/", methods=["GET"])
    def health():
        return jsonify({
            "status": "PDF Combiner running",
            "max_total_size": format_file_size(config.max_total_size),
            "endpoints": sorted(
                rule.rule for rule in app.url_map.iter_rules() if rule.endpoint != "static"
            ),
        })

    return app


def configure_logging():
    logging.basicConfig(
        level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# =========================
# START SERVER
# =========================
def main():
    configure_logging()
    app = create_app()
    port = int(os.environ.get("PORT", 5000))
    app.run(host="127.0.0.1", port=port, debug=os.environ.get("FLASK_DEBUG") == "1")


if __name__ == "__main__":
    main()
