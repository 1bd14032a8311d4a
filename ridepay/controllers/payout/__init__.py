from flask import Blueprint

payout_bp = Blueprint('payout_bp',__name__)


from .payout_controller import *
