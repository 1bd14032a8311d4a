from flask import Blueprint

dashboard_bp = Blueprint('dashboard_bp',__name__)


from .dashboard_controller import *
