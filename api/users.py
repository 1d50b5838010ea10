from __future__ import annotations

from typing import Tuple

from flask import Blueprint, request, jsonify, abort

from models import storage
from models.user import User, UserStatus
from models.schemas.user import UserCreateSchema, UserUpdateSchema, UserOutSchema
from utils.decorators import token_required
from utils.security import hash_password

MAX_LIMIT = 100

bp = Blueprint("users", __name__)

user_create_schema = UserCreateSchema()
user_update_schema = UserUpdateSchema()
user_out_schema = UserOutSchema()
user_list_out_schema = UserOutSchema(many=True)


def parse_pagination() -> Tuple[int, int]:
    try:
        page = int(request.args.get("page", "1"))
        limit = int(request.args.get("limit", "20"))
        page = max(page, 1)
        limit = max(1, min(limit, MAX_LIMIT))
        return page, limit
    except ValueError:
        abort(400, description="page and limit must be integers")


def parse_sort(default="name"):
    sort = request.args.get("sort", default)
    desc = sort.startswith("-")
    key = sort[1:] if desc else sort
    if key != "name":
        abort(400, description="Unsupported sort field. Allowed: name")
    return (User.name.desc() if desc else User.name.asc(),)


def get_user_or_404(user_id: str) -> User:
    user = storage.get(User, user_id)
    if not user:
        abort(404, description="Usuário não encontrado")
    return user


def email_taken(email: str, exclude_id: str | None = None) -> bool:
    query = storage.get_session().query(User).filter(User.email == email)
    if exclude_id:
        query = query.filter(User.id != exclude_id)
    return query.first() is not None


@bp.post("/users")
def create_user():
    """
    Create a user (password is stored as an Argon2 hash)
    ---
    tags:
      - Users
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          required: [name, birthDate, cpf, email, password]
          properties:
            name: { type: string, maxLength: 100 }
            birthDate: { type: string, format: date }
            rg: { type: string, maxLength: 9 }
            cpf: { type: string, maxLength: 11 }
            email: { type: string, format: email }
            password: { type: string, format: password }
            status: { type: string, enum: [Ativo, Inativo] }
    responses:
      201:
        description: Created
      409:
        description: E-mail já cadastrado
      422:
        description: Validation error
    """
    data = user_create_schema.load(request.get_json(silent=True) or {})
    if email_taken(data["email"]):
        abort(409, description="E-mail já cadastrado")

    user = User(
        name=data["name"].strip(),
        birth_date=data["birth_date"],
        rg=data.get("rg"),
        cpf=data["cpf"],
        email=data["email"],
        password_hash=hash_password(data["password"]),
        status=UserStatus(data["status"]),
    )
    storage.new(user)
    storage.save()
    return jsonify({"data": user_out_schema.dump(user)}), 201


@bp.get("/users")
@token_required()
def list_users():
    """
    List users (pagination and sorting by name)
    ---
    tags:
      - Users
    security:
      - Bearer: []
    parameters:
      - in: query
        name: page
        type: integer
        default: 1
      - in: query
        name: limit
        type: integer
        default: 20
      - in: query
        name: sort
        type: string
        default: name
        description: "Allowed: name or -name"
    responses:
      200: { description: OK }
      401: { description: Unauthorized }
    """
    page, limit = parse_pagination()
    order_by = parse_sort()

    query = storage.get_session().query(User)
    total = query.count()
    rows = query.order_by(*order_by).offset((page - 1) * limit).limit(limit).all()
    return jsonify(
        {
            "data": user_list_out_schema.dump(rows),
            "meta": {"page": page, "limit": limit, "total": total},
        }
    ), 200


@bp.get("/users/<user_id>")
@token_required()
def get_user(user_id: str):
    """
    Get a user by id
    ---
    tags:
      - Users
    security:
      - Bearer: []
    parameters:
      - in: path
        name: user_id
        type: string
        required: true
    responses:
      200: { description: OK }
      401: { description: Unauthorized }
      404: { description: Usuário não encontrado }
    """
    user = get_user_or_404(user_id)
    return jsonify({"data": user_out_schema.dump(user)}), 200


@bp.put("/users/<user_id>")
@token_required()
def update_user(user_id: str):
    """
    Update a user (partial; cpf is immutable)
    ---
    tags:
      - Users
    security:
      - Bearer: []
    consumes:
      - application/json
    parameters:
      - in: path
        name: user_id
        type: string
        required: true
      - in: body
        name: body
        schema:
          type: object
          properties:
            name: { type: string }
            birthDate: { type: string, format: date }
            rg: { type: string }
            email: { type: string, format: email }
            password: { type: string, format: password }
            status: { type: string, enum: [Ativo, Inativo] }
    responses:
      200: { description: OK }
      401: { description: Unauthorized }
      404: { description: Usuário não encontrado }
      409: { description: E-mail já cadastrado }
      422: { description: Validation error }
    """
    user = get_user_or_404(user_id)
    data = user_update_schema.load(request.get_json(silent=True) or {})

    if "email" in data and email_taken(data["email"], exclude_id=user.id):
        abort(409, description="E-mail já cadastrado")
    if "password" in data:
        user.password_hash = hash_password(data.pop("password"))
    if "status" in data:
        data["status"] = UserStatus(data["status"])
    if "name" in data:
        data["name"] = data["name"].strip()
    for key, value in data.items():
        setattr(user, key, value)

    storage.new(user)
    storage.save()
    return jsonify(
        {
            "message": "Usuário atualizado com sucesso",
            "data": user_out_schema.dump(user),
        }
    ), 200


@bp.delete("/users/<user_id>")
@token_required()
def delete_user(user_id: str):
    """
    Delete a user; their refresh sessions go with them
    ---
    tags:
      - Users
    security:
      - Bearer: []
    parameters:
      - in: path
        name: user_id
        type: string
        required: true
    responses:
      200: { description: Usuário removido com sucesso }
      401: { description: Unauthorized }
      404: { description: Usuário não encontrado }
    """
    user = get_user_or_404(user_id)
    storage.delete(user)
    storage.save()
    return jsonify({"message": "Usuário removido com sucesso"}), 200
