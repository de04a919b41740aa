from flask import Blueprint, render_template
from flask_login import login_required

from inventorypro.dashboard import CHART_COLORS, load_dashboard

bp = Blueprint("dashboard", __name__)


@bp.route("/")
@login_required
def home():
    summary = load_dashboard()
    return render_template("dashboard.html", summary=summary, chart_colors=CHART_COLORS)
