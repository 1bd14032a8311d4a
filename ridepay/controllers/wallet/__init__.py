from flask import Blueprint

wallet_bp = Blueprint('wallet_bp',__name__)


from .wallet_controller import *
