# storefront/utils/auth.py
"""
Borda de autenticação: tokens Bearer assinados com o SECRET_KEY do app.
Claims: {sub, type: 'admin' | 'user', email, name}
"""

from functools import wraps

from flask import current_app, g, request
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from .errors import Forbidden, Unauthorized

TOKEN_SALT = "storefront-auth"
PRINCIPAL_TYPES = {"admin", "user"}


def _serializer():
    return URLSafeTimedSerializer(current_app.config["SECRET_KEY"], salt=TOKEN_SALT)


def issue_token(claims):
    if claims.get("type") not in PRINCIPAL_TYPES or not claims.get("sub"):
        raise ValueError("claims precisam de 'sub' e 'type' (admin|user)")
    return _serializer().dumps(claims)


def _bearer_token():
    header = request.headers.get("Authorization", "")
    if not header.startswith("Bearer "):
        return None
    return header[len("Bearer "):].strip() or None


def decode_token(token):
    max_age = int(current_app.config.get("TOKEN_MAX_AGE", 86400))
    try:
        claims = _serializer().loads(token, max_age=max_age)
    except SignatureExpired:
        raise Unauthorized("Token expirado.")
    except BadSignature:
        raise Unauthorized("Token inválido.")
    if not isinstance(claims, dict) or claims.get("type") not in PRINCIPAL_TYPES:
        raise Unauthorized("Token inválido.")
    return claims


def _require(principal_type):
    token = _bearer_token()
    if not token:
        raise Unauthorized("Acesso negado. Token não informado.")
    claims = decode_token(token)
    if claims["type"] != principal_type:
        raise Forbidden(f"Acesso negado. Token de {principal_type} necessário.")
    g.principal = claims


def admin_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        _require("admin")
        return view(*args, **kwargs)
    return wrapper


def user_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        _require("user")
        return view(*args, **kwargs)
    return wrapper


def optional_user(view):
    """Checkout de convidado: sem token segue anônimo, token inválido ainda é 401"""
    @wraps(view)
    def wrapper(*args, **kwargs):
        g.principal = None
        token = _bearer_token()
        if token:
            claims = decode_token(token)
            if claims["type"] == "user":
                g.principal = claims
        return view(*args, **kwargs)
    return wrapper
