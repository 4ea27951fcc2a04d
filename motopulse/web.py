"""Flask web application."""

from __future__ import annotations

import logging
from typing import Optional

from flask import Flask, Response, g, jsonify, redirect, render_template_string, request, url_for

from . import db, ingest, utils, view
from .errors import ConfigurationError

logger = logging.getLogger(__name__)

ERROR_MESSAGE = "Failed to fetch reviews"

TEMPLATE = """
<!doctype html>
<html lang="en">
<head>
  <meta charset="utf-8" />
  <meta name="viewport" content="width=device-width,initial-scale=1" />
  <title>{{ title }}</title>
  <script src="https://cdn.tailwindcss.com"></script>
  <style>
    :root {
      --bg-primary: #0a0a0a;
      --bg-secondary: #111111;
      --bg-tertiary: #1a1a1a;
      --bg-card: linear-gradient(135deg, #1a1a1a 0%, #0f0f0f 100%);
      --bg-card-hover: linear-gradient(135deg, #202020 0%, #141414 100%);

      --border-primary: #2a2a2a;
      --border-secondary: #333333;

      --text-primary: #f8fafc;
      --text-secondary: #cbd5e1;
      --text-muted: #94a3b8;

      --accent-blue: #3b82f6;
      --accent-blue-hover: #2563eb;
      --accent-green: #10b981;
      --accent-red: #ef4444;
      --accent-orange: #f59e0b;

      --shadow-sm: 0 1px 2px 0 rgb(0 0 0 / 0.25);
      --shadow-md: 0 4px 6px -1px rgb(0 0 0 / 0.3), 0 2px 4px -2px rgb(0 0 0 / 0.3);
      --transition-fast: 150ms cubic-bezier(0.4, 0, 0.2, 1);
      --transition-normal: 250ms cubic-bezier(0.4, 0, 0.2, 1);
    }

    .modern-card {
      background: var(--bg-card);
      border: 1px solid var(--border-primary);
      border-radius: 16px;
      box-shadow: var(--shadow-sm);
      transition: all var(--transition-normal);
    }

    .modern-card:hover {
      background: var(--bg-card-hover);
      border-color: var(--border-secondary);
      box-shadow: var(--shadow-md);
    }

    .actionable-card { border-color: rgba(239, 68, 68, 0.35); }

    .btn-primary {
      background: linear-gradient(135deg, var(--accent-blue) 0%, var(--accent-blue-hover) 100%);
      border-radius: 12px;
      color: white;
      font-weight: 500;
      padding: 8px 16px;
    }

    .btn-secondary, .chip {
      background: var(--bg-tertiary);
      border: 1px solid var(--border-primary);
      border-radius: 12px;
      color: var(--text-secondary);
      padding: 6px 12px;
      transition: all var(--transition-fast);
    }

    .chip-active { border-color: var(--accent-blue); color: var(--text-primary); }

    .modern-select, .modern-input {
      background: var(--bg-secondary);
      border: 1px solid var(--border-primary);
      border-radius: 12px;
      color: var(--text-primary);
      padding: 6px 12px;
      font-size: 14px;
    }

    .badge {
      display: inline-flex;
      align-items: center;
      gap: 6px;
      padding: 4px 8px;
      border-radius: 8px;
      font-size: 11px;
      font-weight: 500;
      text-transform: uppercase;
      letter-spacing: 0.05em;
    }

    .badge-positive { background: rgba(16, 185, 129, 0.1); color: var(--accent-green); border: 1px solid rgba(16, 185, 129, 0.2); }
    .badge-negative { background: rgba(239, 68, 68, 0.1); color: var(--accent-red); border: 1px solid rgba(239, 68, 68, 0.2); }
    .badge-neutral { background: rgba(148, 163, 184, 0.1); color: var(--text-muted); border: 1px solid rgba(148, 163, 184, 0.2); }
    .badge-question { background: rgba(245, 158, 11, 0.1); color: var(--accent-orange); border: 1px solid rgba(245, 158, 11, 0.2); }
    .badge-category { background: rgba(59, 130, 246, 0.1); color: #60a5fa; border: 1px solid rgba(59, 130, 246, 0.2); }
  </style>
</head>
<body class="bg-[var(--bg-primary)] text-[var(--text-primary)]">
  <div class="max-w-7xl mx-auto p-4 md:p-8">
    <div class="flex flex-col md:flex-row md:items-end md:justify-between gap-4">
      <div>
        <h1 class="text-3xl md:text-4xl font-bold">{{ title }}</h1>
        <div class="text-[var(--text-secondary)] mt-2 text-sm flex flex-wrap items-center gap-4">
          <span>{{ v.metrics_label if v else "Reviews" }}</span>
          {% if status.last_run_utc %}
            <span>Last refresh: <span class="font-semibold text-[var(--text-primary)]">{{ status.last_run_utc[:19] }} UTC</span></span>
          {% endif %}
          {% if status.last_error %}
            <span class="text-[var(--accent-red)]">Last error: {{ status.last_error }}</span>
          {% endif %}
        </div>
      </div>
      <a class="btn-primary text-sm" href="{{ url_for('fetch_now') }}">Refresh from Reddit</a>
    </div>

    {% if error %}
      <div class="modern-card p-6 mt-8 max-w-xl">
        <div class="text-[var(--accent-red)] font-medium">Error loading reviews</div>
        <div class="text-sm text-[var(--text-secondary)] mt-2">{{ error }}</div>
        {% if setup_required %}
          <div class="mt-4 p-4 bg-[var(--bg-tertiary)] rounded-lg text-sm">
            <div class="font-medium mb-2">Setup required:</div>
            <div class="text-[var(--text-muted)]">
              Add your Reddit app credentials as environment variables:
              <br />&bull; REDDIT_CLIENT_ID
              <br />&bull; REDDIT_CLIENT_SECRET
            </div>
          </div>
        {% endif %}
      </div>
    {% else %}

    <div class="grid grid-cols-2 md:grid-cols-4 gap-4 mt-8">
      <div class="modern-card p-4"><div class="text-xs text-[var(--text-muted)] uppercase">Reviews</div><div class="text-2xl font-bold">{{ v.metrics.total }}</div></div>
      <div class="modern-card p-4"><div class="text-xs text-[var(--text-muted)] uppercase">Positive</div><div class="text-2xl font-bold text-[var(--accent-green)]">{{ v.metrics.positive }}</div></div>
      <div class="modern-card p-4"><div class="text-xs text-[var(--text-muted)] uppercase">Negative</div><div class="text-2xl font-bold text-[var(--accent-red)]">{{ v.metrics.negative }}</div></div>
      <div class="modern-card p-4"><div class="text-xs text-[var(--text-muted)] uppercase">Questions</div><div class="text-2xl font-bold text-[var(--accent-orange)]">{{ v.metrics.questions }}</div></div>
    </div>

    <div class="flex flex-wrap gap-3 items-center mt-6">
      {% for key, label in v.range_labels.items() %}
        <a class="chip text-sm {% if v.state.date_range == key %}chip-active{% endif %}"
           href="{{ url_for('index', **v.state.with_changes(date_range=key, on_date=None).to_args()) }}">{{ label }}</a>
      {% endfor %}
      <form method="get" class="flex flex-wrap gap-3 items-center">
        {% for key, value in v.state.with_changes(date_range='all', on_date=None).to_args().items() %}
          <input type="hidden" name="{{ key }}" value="{{ value }}" />
        {% endfor %}
        <input type="date" name="date" class="modern-input" value="{{ v.state.on_date.isoformat() if v.state.on_date else '' }}" />
        <button type="submit" class="btn-secondary text-sm">Go</button>
      </form>
    </div>

    <div class="flex flex-wrap gap-3 items-center mt-4">
      <form method="get" class="flex gap-3 items-center">
        {% for key, value in v.state.with_changes(category='all').to_args().items() %}
          <input type="hidden" name="{{ key }}" value="{{ value }}" />
        {% endfor %}
        <select name="category" class="modern-select" onchange="this.form.submit()">
          {% for c in v.categories %}
            <option value="{{ c }}" {% if c == v.state.category %}selected{% endif %}>{{ "All categories" if c == "all" else c }}</option>
          {% endfor %}
        </select>
      </form>
      <span class="text-sm text-[var(--text-muted)]">Sort:</span>
      {% for key in ["date", "sentiment"] %}
        {% set same = v.state.sort_key == key %}
        <a class="chip text-sm {% if same %}chip-active{% endif %}"
           href="{{ url_for('index', **v.state.with_changes(sort_key=key, sort_desc=(not v.state.sort_desc) if same else True).to_args()) }}">
          {{ key|capitalize }}{% if same %} {{ "&darr;"|safe if v.state.sort_desc else "&uarr;"|safe }}{% endif %}
        </a>
      {% endfor %}
    </div>

    {% if v.actionable.total_items %}
      <h2 class="text-2xl font-bold mt-10">Actionable Feedback
        <span class="badge badge-negative ml-2">{{ v.actionable.total_items }} {{ "item" if v.actionable.total_items == 1 else "items" }}</span>
      </h2>
      <p class="text-[var(--text-muted)] text-sm mt-1">Questions and negative reviews needing a response</p>
      <div class="grid grid-cols-1 lg:grid-cols-3 gap-6 mt-4">
        {% for r in v.actionable.items %}
          {{ card(r, "actionable-card") }}
        {% endfor %}
      </div>
      {{ pager(v.actionable, "actionable_page", v.state) }}
    {% endif %}

    <h2 class="text-2xl font-bold mt-10">All Reviews
      <span class="text-sm font-normal text-[var(--text-muted)]">{{ v.reviews.first_index }}&ndash;{{ v.reviews.last_index }} of {{ v.reviews.total_items }}</span>
    </h2>
    {% if not v.reviews.items %}
      <div class="text-[var(--text-muted)] mt-4">No reviews match the current filters.</div>
    {% endif %}
    <div class="grid grid-cols-1 md:grid-cols-2 lg:grid-cols-3 gap-6 mt-4">
      {% for r in v.reviews.items %}
        {{ card(r, "") }}
      {% endfor %}
    </div>
    {{ pager(v.reviews, "page", v.state) }}
    {% endif %}
  </div>
</body>
</html>
"""

MACROS = """
{% macro card(r, card_class) %}<div class="modern-card p-5 flex flex-col gap-3 {{ card_class }}">
  <div class="flex flex-wrap gap-2">
    <span class="badge badge-{{ r.sentiment }}">{{ r.sentiment }} &middot; {{ r.confidence }}%</span>
    <span class="badge badge-category">{{ r.category }}</span>
    {% if r.isQuestion %}<span class="badge badge-question">Question</span>{% endif %}
  </div>
  <a href="{{ r.url }}" target="_blank" rel="noopener" class="font-semibold hover:underline">{{ r.title }}</a>
  <div class="text-sm text-[var(--text-secondary)]">{{ r.summary }}</div>
  <div class="text-xs text-[var(--text-muted)] flex gap-4 mt-auto">
    <span>&uarr; {{ r.upvotes }}</span>
    <span>{{ r.comments }} comments</span>
    <span>r/{{ r.channel }}</span>
    <span>{{ r.createdAt[:10] }}</span>
  </div>
</div>
{% endmacro %}

{% macro pager(p, arg, state) %}{% if p.total_pages > 1 %}
<div class="flex items-center gap-3 mt-4 text-sm">
  {% if p.has_prev %}
    <a class="btn-secondary" href="{{ url_for('index', **state.with_changes(**{arg: p.number - 1}).to_args()) }}">&larr; Prev</a>
  {% endif %}
  <span class="text-[var(--text-muted)]">Page {{ p.number }} of {{ p.total_pages }}</span>
  {% if p.has_next %}
    <a class="btn-secondary" href="{{ url_for('index', **state.with_changes(**{arg: p.number + 1}).to_args()) }}">Next &rarr;</a>
  {% endif %}
</div>
{% endif %}
{% endmacro %}
"""

DASHBOARD_TEMPLATE = MACROS + TEMPLATE

MAINTENANCE_TEMPLATE = """
<!doctype html>
<html lang="en">
<head>
  <meta charset="utf-8" />
  <title>Cache Maintenance</title>
  <script src="https://cdn.tailwindcss.com"></script>
</head>
<body class="bg-slate-950 text-slate-100">
  <div class="max-w-3xl mx-auto p-4 md:p-8">
    <a href="{{ url_for('index') }}" class="text-indigo-300 hover:text-indigo-200">&larr; Back to Dashboard</a>
    <h1 class="text-2xl md:text-3xl font-semibold my-6">Cache Maintenance</h1>
    {% if success_msg %}
      <div class="bg-green-900 border border-green-700 rounded-xl p-4 mb-6 text-green-200">{{ success_msg }}</div>
    {% endif %}
    <div class="grid grid-cols-1 md:grid-cols-2 gap-6">
      <div class="bg-slate-900 border border-slate-800 rounded-2xl p-6 space-y-3">
        <h2 class="text-lg font-medium">Cache Status</h2>
        <div class="flex justify-between"><span class="text-slate-300">Cached reviews:</span><span>{{ review_count }}</span></div>
        <div class="flex justify-between"><span class="text-slate-300">File size:</span><span>{{ size_str }}</span></div>
        <div class="flex justify-between"><span class="text-slate-300">Retention period:</span><span>{{ retention_days }} days</span></div>
        <div class="flex justify-between"><span class="text-slate-300">Last cleanup:</span><span>{{ last_cleanup or "Never" }}</span></div>
      </div>
      <div class="bg-slate-900 border border-slate-800 rounded-2xl p-6 space-y-4">
        <h2 class="text-lg font-medium">Cleanup</h2>
        <form method="post"><input type="hidden" name="action" value="cleanup" />
          <button type="submit" class="px-4 py-2 bg-indigo-600 hover:bg-indigo-500 rounded-xl">Run Cleanup Now</button></form>
        <div class="text-sm text-slate-400">Deletes reviews posted more than {{ retention_days }} days ago.</div>
        <form method="post"><input type="hidden" name="action" value="vacuum" />
          <button type="submit" class="px-4 py-2 bg-orange-600 hover:bg-orange-500 rounded-xl">Run VACUUM</button></form>
      </div>
    </div>
  </div>
</body>
</html>
"""


def format_size(size: int) -> str:
    if size < 1024:
        return f"{size} bytes"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    return f"{size / (1024 * 1024):.1f} MB"


def create_app(app_title: str) -> Flask:
    """Create and configure the Flask application."""
    app = Flask(__name__)

    @app.teardown_appcontext
    def _teardown(exc: Optional[BaseException]) -> None:
        db_conn = g.pop("db", None)
        if db_conn is not None:
            db_conn.close()

    @app.route("/")
    def index() -> Response:
        state = view.ViewState.from_args(request.args)
        status = ingest.get_fetch_status()
        try:
            # Only a bare landing visit may fill an empty cache.
            if request.args:
                reviews = ingest.load_cached_reviews(db.get_db())
            else:
                reviews = ingest.load_reviews(db.get_db())
        except Exception as ex:
            logger.exception("Dashboard load failed")
            return render_template_string(
                DASHBOARD_TEMPLATE,
                title=app_title,
                v=None,
                status=ingest.get_fetch_status(),
                error=str(ex),
                setup_required=isinstance(ex, ConfigurationError),
            ), 500

        return render_template_string(
            DASHBOARD_TEMPLATE,
            title=app_title,
            v=view.build_view(reviews, state, utils.utcnow()),
            status=status,
            error=None,
            setup_required=False,
        )

    @app.route("/api/reviews")
    def api_reviews() -> Response:
        refresh = request.args.get("refresh", "").lower() in ("1", "true", "yes")
        try:
            reviews = ingest.load_reviews(db.get_db(), refresh=refresh)
        except Exception as ex:
            logger.exception("Review fetch failed")
            return jsonify({"error": ERROR_MESSAGE, "details": str(ex)}), 500
        return jsonify({"reviews": reviews})

    @app.route("/fetch-now")
    def fetch_now() -> Response:
        try:
            ingest.load_reviews(db.get_db(), refresh=True)
        except Exception:
            # Status carries the error; the dashboard shows it.
            logger.exception("Forced refresh failed")
        return redirect(url_for("index"))

    @app.route("/healthz")
    def healthz() -> Response:
        """Health check endpoint. Returns 503 if the last refresh failed, else 200."""
        status = ingest.get_fetch_status()
        if status["last_error"]:
            return Response(
                f"Unhealthy: {status['last_error']}",
                status=503,
                mimetype="text/plain"
            )
        return Response("OK", status=200, mimetype="text/plain")

    @app.route("/admin/maintenance", methods=["GET", "POST"])
    def admin_maintenance() -> Response:
        """Cache maintenance page."""
        conn = db.get_db()
        if request.method == "POST":
            action = request.form.get("action")
            if action == "cleanup":
                stats = db.run_cleanup(conn)
                return redirect(url_for("admin_maintenance", success=f"Cleanup completed: {stats['reviews_deleted']} reviews deleted"))
            if action == "vacuum":
                conn.execute("VACUUM")
                return redirect(url_for("admin_maintenance", success="VACUUM completed"))

        return render_template_string(
            MAINTENANCE_TEMPLATE,
            success_msg=request.args.get("success"),
            review_count=db.count_reviews(conn),
            size_str=format_size(db.get_db_file_size()),
            retention_days=db.get_retention_days(),
            last_cleanup=db.get_maintenance_state(conn, "last_cleanup"),
        )

    return app
