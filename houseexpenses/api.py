from flask import current_app, jsonify, request


def ok(data=None, status=200):
    return jsonify({"ok": True, "data": data}), status


def paginated(query, serialize):
    page = request.args.get("page", 1, type=int)
    per_page = request.args.get("per_page", current_app.config["PAGE_SIZE"], type=int)
    result = query.paginate(
        page=page,
        per_page=per_page,
        max_per_page=current_app.config["MAX_PAGE_SIZE"],
        error_out=False,
    )
    return ok({
        "items": [serialize(item) for item in result.items],
        "page": result.page,
        "per_page": result.per_page,
        "total": result.total,
        "pages": result.pages,
    })
