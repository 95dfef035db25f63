"""JSON API for the ADHD dashboard."""

import json
import sqlite3
from datetime import datetime, timezone

import uvicorn
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from adhd_dashboard import serializers as ser
from adhd_dashboard.config import get_config
from adhd_dashboard.core import assistant as assistant_mod
from adhd_dashboard.core import focus as focus_mod
from adhd_dashboard.core import tasks as tasks_mod
from adhd_dashboard.core import users as users_mod
from adhd_dashboard.core.focus import FocusSessionError
from adhd_dashboard.core.reorder import TaskNotFoundError
from adhd_dashboard.core.users import UserNotFoundError
from adhd_dashboard.db.engine import init_db


def _get_db():
    config = get_config()
    return init_db(config.db_path)


def _error(message: str, status_code: int) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code)


async def _body(request: Request) -> dict:
    raw = await request.body()
    if not raw:
        return {}
    data = json.loads(raw)
    if not isinstance(data, dict):
        raise ValueError("Request body must be a JSON object")
    return data


def _current_time(value: str | None) -> datetime:
    return ser.parse_datetime(value) or datetime.now(timezone.utc)


# ── Users ─────────────────────────────────────────────────────────────────────


async def api_create_user(request: Request):
    db = _get_db()
    try:
        body = await _body(request)
        profile = users_mod.profile_from_dict(body.get("adhd_profile") or {})
        user = users_mod.create_user(
            db,
            body["id"],
            body["email"],
            body.get("first_name", ""),
            body.get("last_name", ""),
            profile=profile,
        )
        return JSONResponse(ser.user_to_dict(user), status_code=201)
    except KeyError as e:
        return _error(f"Missing field: {e.args[0]}", 400)
    except sqlite3.IntegrityError:
        return _error("User already exists", 409)
    except ValueError as e:
        return _error(str(e), 400)
    finally:
        db.close()


async def api_get_user(request: Request):
    user_id = request.path_params["user_id"]
    db = _get_db()
    try:
        user = users_mod.get_user(db, user_id)
        if not user:
            return _error("User not found", 404)
        return JSONResponse(ser.user_to_dict(user))
    finally:
        db.close()


async def api_update_profile(request: Request):
    user_id = request.path_params["user_id"]
    db = _get_db()
    try:
        body = await _body(request)
        user = users_mod.update_profile(db, user_id, **body)
        if not user:
            return _error("User not found", 404)
        return JSONResponse(ser.user_to_dict(user))
    except (KeyError, ValueError) as e:
        return _error(str(e), 400)
    finally:
        db.close()


# ── Tasks ─────────────────────────────────────────────────────────────────────


async def api_user_tasks(request: Request):
    user_id = request.path_params["user_id"]
    params = request.query_params
    db = _get_db()
    try:
        if not users_mod.get_user(db, user_id):
            return _error("User not found", 404)
        tasks = tasks_mod.list_tasks(
            db,
            user_id,
            status=params.get("status"),
            priority=params.get("priority"),
            energy_level=params.get("energy_level"),
            context=params.get("context"),
        )
        return JSONResponse([ser.task_to_dict(t) for t in tasks])
    except ValueError as e:
        return _error(str(e), 400)
    finally:
        db.close()


async def api_create_task(request: Request):
    user_id = request.path_params["user_id"]
    db = _get_db()
    try:
        if not users_mod.get_user(db, user_id):
            return _error("User not found", 404)
        body = await _body(request)
        task = tasks_mod.create_task(
            db,
            user_id,
            body["title"],
            description=body.get("description", ""),
            priority=body.get("priority", "medium"),
            difficulty=body.get("difficulty", "medium"),
            estimated_duration=int(body.get("estimated_duration", 30)),
            tags=body.get("tags"),
            due_date=ser.parse_datetime(body.get("due_date")),
            energy_level=body.get("energy_level"),
            context=body.get("context"),
            parent_task_id=body.get("parent_task_id"),
        )
        return JSONResponse(ser.task_to_dict(task), status_code=201)
    except KeyError as e:
        return _error(f"Missing field: {e.args[0]}", 400)
    except ValueError as e:
        return _error(str(e), 400)
    finally:
        db.close()


async def api_user_stats(request: Request):
    user_id = request.path_params["user_id"]
    db = _get_db()
    try:
        if not users_mod.get_user(db, user_id):
            return _error("User not found", 404)
        stats = tasks_mod.get_task_stats(db, user_id)
        return JSONResponse(ser.stats_to_dict(stats))
    finally:
        db.close()


async def api_get_task(request: Request):
    task_id = request.path_params["task_id"]
    db = _get_db()
    try:
        task = tasks_mod.get_task(db, task_id)
        if not task:
            return _error("Task not found", 404)
        return JSONResponse(ser.task_to_dict(task))
    finally:
        db.close()


async def api_update_task(request: Request):
    task_id = request.path_params["task_id"]
    db = _get_db()
    try:
        body = await _body(request)
        unknown = sorted(set(body) - tasks_mod.UPDATABLE_FIELDS)
        if unknown:
            return _error(f"Cannot update field(s): {', '.join(unknown)}", 400)
        if "due_date" in body:
            body["due_date"] = ser.parse_datetime(body["due_date"])
        task = tasks_mod.update_task(db, task_id, **body)
        if not task:
            return _error("Task not found", 404)
        return JSONResponse(ser.task_to_dict(task))
    except (TypeError, ValueError) as e:
        return _error(str(e), 400)
    finally:
        db.close()


async def api_update_task_status(request: Request):
    task_id = request.path_params["task_id"]
    db = _get_db()
    try:
        body = await _body(request)
        task = tasks_mod.update_task_status(db, task_id, body.get("status", ""))
        if not task:
            return _error("Task not found", 404)
        return JSONResponse(ser.task_to_dict(task))
    except ValueError as e:
        return _error(str(e), 400)
    finally:
        db.close()


async def api_delete_task(request: Request):
    task_id = request.path_params["task_id"]
    db = _get_db()
    try:
        if not tasks_mod.delete_task(db, task_id):
            return _error("Task not found", 404)
        return JSONResponse({"deleted": task_id})
    finally:
        db.close()


# ── Focus sessions ────────────────────────────────────────────────────────────


async def api_start_focus(request: Request):
    task_id = request.path_params["task_id"]
    db = _get_db()
    try:
        body = await _body(request)
        session = focus_mod.start_focus_session(db, task_id, body.get("user_id", ""))
        return JSONResponse(ser.session_to_dict(session), status_code=201)
    except FocusSessionError as e:
        return _error(str(e), 404)
    except ValueError as e:
        return _error(str(e), 400)
    finally:
        db.close()


async def api_end_focus(request: Request):
    session_id = int(request.path_params["session_id"])
    db = _get_db()
    try:
        body = await _body(request)
        session = focus_mod.end_focus_session(
            db,
            session_id,
            body.get("user_id", ""),
            int(body.get("focus_score", 5)),
            int(body.get("distractions", 0)),
        )
        return JSONResponse(ser.session_to_dict(session))
    except FocusSessionError as e:
        return _error(str(e), 409)
    except (TypeError, ValueError) as e:
        return _error(str(e), 400)
    finally:
        db.close()


# ── Suggestions, reordering and insights ─────────────────────────────────────


async def api_suggestions(request: Request):
    user_id = request.path_params["user_id"]
    config = get_config()
    db = _get_db()
    try:
        body = await _body(request)
        response = assistant_mod.generate_for_user(
            db,
            user_id,
            _current_time(body.get("current_time")),
            time_zone=body.get("time_zone") or config.default_timezone,
            preferences=ser.preferences_from_dict(
                body.get("preferences"), default_max=config.heuristics.max_suggestions
            ),
            config=config.heuristics,
        )
        return JSONResponse(ser.suggestion_response_to_dict(response))
    except UserNotFoundError as e:
        return _error(str(e), 404)
    except ValueError as e:
        return _error(str(e), 400)
    finally:
        db.close()


async def api_reorder(request: Request):
    user_id = request.path_params["user_id"]
    config = get_config()
    db = _get_db()
    try:
        body = await _body(request)
        task_ids = body.get("task_ids")
        if not isinstance(task_ids, list) or not task_ids:
            return _error("task_ids must be a non-empty list", 400)
        result = assistant_mod.reorder_for_user(
            db,
            user_id,
            [str(tid) for tid in task_ids],
            _current_time(body.get("current_time")),
            time_zone=body.get("time_zone") or config.default_timezone,
            config=config.heuristics,
        )
        return JSONResponse(ser.reorder_to_dict(result))
    except TaskNotFoundError as e:
        return JSONResponse({"error": str(e), "missing_ids": e.missing_ids}, status_code=404)
    except UserNotFoundError as e:
        return _error(str(e), 404)
    except ValueError as e:
        return _error(str(e), 400)
    finally:
        db.close()


async def api_insights(request: Request):
    user_id = request.path_params["user_id"]
    params = request.query_params
    config = get_config()
    db = _get_db()
    try:
        insights = assistant_mod.insights_for_user(
            db,
            user_id,
            _current_time(params.get("current_time")),
            time_zone=params.get("time_zone") or config.default_timezone,
            config=config.heuristics,
        )
        return JSONResponse([ser.insight_to_dict(i) for i in insights])
    except UserNotFoundError as e:
        return _error(str(e), 404)
    except ValueError as e:
        return _error(str(e), 400)
    finally:
        db.close()


# ── App ───────────────────────────────────────────────────────────────────────


def create_app() -> Starlette:
    routes = [
        Route("/api/users", api_create_user, methods=["POST"]),
        Route("/api/users/{user_id}", api_get_user),
        Route("/api/users/{user_id}/profile", api_update_profile, methods=["PUT"]),
        Route("/api/users/{user_id}/tasks", api_user_tasks),
        Route("/api/users/{user_id}/tasks", api_create_task, methods=["POST"]),
        Route("/api/users/{user_id}/stats", api_user_stats),
        Route("/api/users/{user_id}/ai/suggestions", api_suggestions, methods=["POST"]),
        Route("/api/users/{user_id}/ai/reorder", api_reorder, methods=["POST"]),
        Route("/api/users/{user_id}/ai/insights", api_insights),
        Route("/api/tasks/{task_id}", api_get_task),
        Route("/api/tasks/{task_id}", api_update_task, methods=["PATCH"]),
        Route("/api/tasks/{task_id}", api_delete_task, methods=["DELETE"]),
        Route("/api/tasks/{task_id}/status", api_update_task_status, methods=["PUT"]),
        Route("/api/tasks/{task_id}/focus", api_start_focus, methods=["POST"]),
        Route("/api/focus/{session_id:int}/end", api_end_focus, methods=["POST"]),
    ]
    return Starlette(routes=routes)


def run_server(host: str = "127.0.0.1", port: int = 8787):
    app = create_app()
    uvicorn.run(app, host=host, port=port)
