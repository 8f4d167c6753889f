from flask import Blueprint, current_app, jsonify, request, send_file

from combiner import IntakeManager, MergeOrchestrator, Notice, ProcessingState, Upload
from combiner.errors import InvalidStateError, MergeError

merge_pdf_bp = Blueprint("merge_pdf", __name__)

EXTENSION_KEY = "pdf_combiner"


def init_session(app, config, backend=None):
    """Attach the single local session (accepted set + merge state) to the app."""
    intake = IntakeManager(config)
    app.extensions[EXTENSION_KEY] = MergeOrchestrator(intake, backend=backend, config=config)


def get_orchestrator():
    return current_app.extensions[EXTENSION_KEY]


def read_uploads():
    uploads = []
    for storage in request.files.getlist("files"):
        uploads.append(
            Upload(
                name=storage.filename or "",
                content_type=storage.mimetype or "",
                data=storage.read(),
            )
        )
    return uploads


def session_payload(orchestrator, notices=(), **extra):
    payload = orchestrator.intake.summary()
    payload.update(orchestrator.status())
    payload.update(extra)
    payload["notifications"] = [n.to_dict() for n in notices]
    return payload


def busy_response():
    return jsonify({"error": "A merge is in progress"}), 409


# =========================
# ACCEPTED SET
# =========================
@merge_pdf_bp.route("/files", methods=["GET"])
def list_files():
    return jsonify(session_payload(get_orchestrator()))


@merge_pdf_bp.route("/files", methods=["POST"])
def add_files():
    orchestrator = get_orchestrator()
    if orchestrator.state is ProcessingState.MERGING:
        return busy_response()

    result = orchestrator.intake.add_files(read_uploads())

    notices = [Notice.error(r.message) for r in result.rejections]
    if result.added_count:
        orchestrator.invalidate_result()
        plural = "s" if result.added_count > 1 else ""
        notices.append(Notice.success(f"Added {result.added_count} file{plural}"))

    return jsonify(
        session_payload(
            orchestrator,
            notices,
            added=[f.to_dict() for f in result.added],
            rejections=[r.to_dict() for r in result.rejections],
        )
    )


@merge_pdf_bp.route("/files/<int:file_id>", methods=["DELETE"])
def remove_file(file_id):
    orchestrator = get_orchestrator()
    if orchestrator.state is ProcessingState.MERGING:
        return busy_response()

    notices = []
    if orchestrator.intake.remove_file(file_id):
        orchestrator.invalidate_result()
        notices.append(Notice.success("File removed"))
    return jsonify(session_payload(orchestrator, notices))


# =========================
# MERGE
# =========================
@merge_pdf_bp.route("/merge", methods=["POST"])
async def merge_files():
    orchestrator = get_orchestrator()

    if len(orchestrator.intake) < 2:
        notice = Notice.error("Please select at least 2 PDF files")
        return jsonify({"error": notice.message, "notifications": [notice.to_dict()]}), 400

    try:
        await orchestrator.merge()
    except InvalidStateError as e:
        return jsonify({"error": str(e)}), 409
    except MergeError as e:
        message = "Failed to merge PDFs. Please try again."
        if e.file_name:
            message = f"{message} ({e.file_name})"
        notices = [Notice.error(message)]
        current_app.logger.error("Merge request failed: %s", e)
        return jsonify(session_payload(orchestrator, notices, error=str(e))), 500

    return jsonify(session_payload(orchestrator, [Notice.success("PDFs merged successfully!")]))


@merge_pdf_bp.route("/merge/cancel", methods=["POST"])
def cancel_merge():
    cancelled = get_orchestrator().cancel()
    return jsonify({"cancelled": cancelled})


@merge_pdf_bp.route("/download", methods=["GET"])
def download_merged():
    orchestrator = get_orchestrator()
    try:
        artifact = orchestrator.export_artifact()
    except InvalidStateError as e:
        return jsonify({"error": str(e)}), 409

    current_app.logger.info("Download started: %s (%d bytes)", artifact.filename, artifact.size)
    return send_file(
        artifact.to_stream(),
        mimetype=artifact.mimetype,
        as_attachment=True,
        download_name=artifact.filename,
    )


@merge_pdf_bp.route("/reset", methods=["POST"])
def reset_session():
    orchestrator = get_orchestrator()
    try:
        orchestrator.reset()
    except InvalidStateError:
        return busy_response()
    return jsonify(session_payload(orchestrator, [Notice.success("Reset complete")]))


# =========================
# ONE-SHOT MERGE
# =========================
@merge_pdf_bp.route("/merge-pdf", methods=["POST"])
async def merge_pdfs():
    if "files" not in request.files:
        return jsonify({"error": "No PDF files uploaded"}), 400

    session = get_orchestrator()
    intake = IntakeManager(session.config)
    orchestrator = MergeOrchestrator(intake, backend=session.backend, config=session.config)

    result = intake.add_files(read_uploads())
    if result.rejections:
        return jsonify({"error": "; ".join(r.message for r in result.rejections)}), 400
    if len(intake) < 2:
        return jsonify({"error": "Upload at least two PDFs"}), 400

    try:
        artifact = await orchestrator.merge()
    except MergeError as e:
        return jsonify({"error": str(e)}), 500

    return send_file(
        artifact.to_stream(),
        mimetype=artifact.mimetype,
        as_attachment=True,
        download_name=artifact.filename,
    )
