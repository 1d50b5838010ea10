"""
Authentication blueprint:
- POST /auth/login
- POST /auth/refresh-token
- POST /auth/logout
- GET  /auth/me

Views only unpack JSON and shape responses; the rules live in
services.session_authority.SessionAuthority (built once in create_app).
"""
from __future__ import annotations

from flask import Blueprint, request, jsonify, g

from models.schemas.user import UserOutSchema
from utils.decorators import token_required, get_session_authority

bp = Blueprint("auth", __name__, url_prefix="/auth")

session_user_schema = UserOutSchema(only=("id", "name", "email", "status"))


def _json_body() -> dict:
    payload = request.get_json(silent=True)
    return payload if isinstance(payload, dict) else {}


@bp.post("/login")
def login():
    """
    Login: return an access token and a refresh token
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         required: true
         schema:
           type: object
           required: [email, password]
           properties:
             email: { type: string, format: email }
             password: { type: string, format: password }
    responses:
      200:
        description: OK (returns user, token, refreshToken, expiresIn)
      400:
        description: Email e senha são obrigatórios
      401:
        description: Email ou senha incorretos / Usuário inativo
      500:
        description: Erro interno no servidor
    """
    payload = _json_body()
    result = get_session_authority().login(payload.get("email"), payload.get("password"))
    return jsonify(
        {
            "user": session_user_schema.dump(result.user),
            "token": result.access_token,
            "refreshToken": result.refresh_token,
            "expiresIn": result.expires_in,
        }
    ), 200


@bp.post("/refresh-token")
def refresh_token():
    """
    Exchange a refresh token for a new access token (the refresh token is rotated)
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         required: true
         schema:
           type: object
           required: [refreshToken]
           properties:
             refreshToken: { type: string }
    responses:
      200:
        description: OK (returns token, refreshToken, expiresIn)
      400:
        description: Refresh token é obrigatório
      401:
        description: Refresh token inválido / expirado / usuário inválido ou inativo
      500:
        description: Erro interno no servidor
    """
    payload = _json_body()
    result = get_session_authority().refresh(payload.get("refreshToken"))
    return jsonify(
        {
            "token": result.access_token,
            "refreshToken": result.refresh_token,
            "expiresIn": result.expires_in,
        }
    ), 200


@bp.post("/logout")
def logout():
    """
    Logout: revoke a refresh token (idempotent)
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         required: true
         schema:
           type: object
           required: [refreshToken]
           properties:
             refreshToken: { type: string }
    responses:
      200:
        description: Logout realizado com sucesso
      400:
        description: Refresh token é obrigatório
      500:
        description: Erro interno no servidor
    """
    payload = _json_body()
    message = get_session_authority().logout(payload.get("refreshToken"))
    return jsonify({"message": message}), 200


@bp.get("/me")
@token_required()
def me():
    """
    Claims of the current access token
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    responses:
      200:
        description: OK
      401:
        description: Token não fornecido / Token inválido ou expirado
    """
    return jsonify({"data": g.current_user_claims}), 200
