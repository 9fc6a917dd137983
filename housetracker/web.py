"""Flask application serving the list, detail, map and insert pages."""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass

from flask import (
    Flask,
    abort,
    current_app,
    redirect,
    render_template,
    request,
    send_file,
    url_for,
)

from .cache import COLLECTION_KEY, QueryCache
from .client import HouseApiClient
from .export import build_workbook
from .models import DEFAULT_VOTE, ListingDraft, validate_vote
from .navigation import SELECTION_PARAM, resolve, switch_items
from .views import (
    DetailView,
    InsertView,
    ListView,
    MapView,
    ViewStatus,
    watch_collection,
)

logger = logging.getLogger(__name__)

EXTENSION_KEY = "housetracker"
XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@dataclass
class Services:
    client: HouseApiClient
    cache: QueryCache


def _services() -> Services:
    return current_app.extensions[EXTENSION_KEY]


def _status_code(status: ViewStatus) -> int:
    return 502 if status is ViewStatus.ERROR else 200


def _form_vote() -> int:
    try:
        return validate_vote(request.form.get("vote", DEFAULT_VOTE))
    except ValueError as exc:
        logger.info("Rejected vote %r: %s", request.form.get("vote"), exc)
        abort(400)


def create_app(client: HouseApiClient, cache: QueryCache | None = None) -> Flask:
    app = Flask(__name__)
    services = Services(client=client, cache=cache or QueryCache())
    app.extensions[EXTENSION_KEY] = services
    watch_collection(services.cache)

    @app.context_processor
    def navigation_context():
        route = resolve(request.path, request.args)
        return {"switch": switch_items(route), "route": route}

    @app.get("/")
    def index():
        return redirect(url_for("list_page"))

    @app.get("/list")
    def list_page():
        view = ListView(_services().client, _services().cache)
        view.load()
        return render_template("list.html", view=view), _status_code(view.status)

    @app.post("/houses/<listing_id>/delete")
    def delete_house(listing_id: str):
        view = ListView(_services().client, _services().cache)
        view.remove(listing_id)
        if view.removal.is_error:
            view.load()
            return render_template("list.html", view=view), 502
        return redirect(url_for("list_page"))

    @app.get("/houses/<listing_id>")
    def detail_page(listing_id: str):
        view = DetailView(_services().client, _services().cache, listing_id)
        view.load()
        return _render_detail(view)

    @app.post("/houses/<listing_id>")
    def update_house(listing_id: str):
        view = DetailView(_services().client, _services().cache, listing_id)
        view.edit(vote=_form_vote(), comment=request.form.get("comment", ""))
        view.update()
        if view.updating.is_error:
            view.load()
            return render_template("detail.html", view=view), 502
        return redirect(url_for("detail_page", listing_id=listing_id))

    @app.get("/map")
    def map_page():
        selected_id = (request.args.get(SELECTION_PARAM) or "").strip() or None
        view = MapView(_services().client, _services().cache, selected_id)
        view.load()
        return render_template("map.html", view=view), _status_code(view.status)

    @app.route("/insert", methods=["GET", "POST"])
    def insert_page():
        services = _services()
        if request.method == "GET":
            view = InsertView(services.client, services.cache)
            return render_template("insert.html", view=view)

        link = request.form.get("link", "").strip()
        previous_link = request.form.get("previous_link", link).strip()
        draft = ListingDraft(
            link=previous_link,
            vote=_form_vote(),
            comment=request.form.get("comment", ""),
        )
        view = InsertView(services.client, services.cache, draft)
        view.set_link(link)

        action = request.form.get("action")
        if action == "discover":
            view.fetch_info()
        elif action == "insert":
            view.submit()
            if view.insertion.is_success:
                services.cache.invalidate(COLLECTION_KEY)
        else:
            abort(400)

        status_code = 502 if view.status is ViewStatus.FAILED else 200
        return render_template("insert.html", view=view), status_code

    @app.get("/export.xlsx")
    def export_listings():
        view = ListView(_services().client, _services().cache)
        state = view.load()
        if not state.is_success:
            return render_template("list.html", view=view), 502
        buffer = io.BytesIO()
        build_workbook(state.data).save(buffer)
        buffer.seek(0)
        return send_file(buffer,
                         mimetype=XLSX_MIMETYPE,
                         as_attachment=True,
                         download_name="listings.xlsx")

    @app.errorhandler(404)
    @app.errorhandler(405)
    def unknown_path(_error):
        logger.debug("Unknown path %s %s, redirecting to the list",
                     request.method, request.path)
        return redirect(url_for("list_page"))

    return app


def _render_detail(view: DetailView):
    if view.status is ViewStatus.ERROR:
        status_code = 404 if view.is_missing else 502
    else:
        status_code = 200
    return render_template("detail.html", view=view), status_code
