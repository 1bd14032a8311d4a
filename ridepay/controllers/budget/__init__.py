from flask import Blueprint

budget_bp = Blueprint('budget_bp',__name__)


from .budget_controller import *
