from marshmallow import Schema, ValidationError, fields, pre_load, validate

from models.user import UserStatus

STATUS_VALUES = [s.value for s in UserStatus]


def _norm_email(v):
    return v.strip().lower() if isinstance(v, str) else v


def _not_blank(value):
    if not isinstance(value, str) or not value.strip():
        raise ValidationError("Field may not be blank.")


class UserCreateSchema(Schema):
    name = fields.String(required=True, validate=[_not_blank, validate.Length(max=100)])
    # camelCase on the wire, as the existing clients send it
    birth_date = fields.Date(required=True, data_key="birthDate")
    rg = fields.String(allow_none=True, validate=validate.Length(max=9))
    cpf = fields.String(required=True, validate=validate.Regexp(r"^\d{11}$", error="CPF must have 11 digits."))
    email = fields.Email(required=True, validate=validate.Length(max=100))
    password = fields.String(required=True, load_only=True, validate=_not_blank)
    status = fields.String(load_default=UserStatus.ACTIVE.value, validate=validate.OneOf(STATUS_VALUES))

    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict) and "email" in data:
            data = dict(data)
            data["email"] = _norm_email(data["email"])
        return data


class UserUpdateSchema(Schema):
    name = fields.String(validate=[_not_blank, validate.Length(max=100)])
    birth_date = fields.Date(data_key="birthDate")
    rg = fields.String(allow_none=True, validate=validate.Length(max=9))
    email = fields.Email(validate=validate.Length(max=100))
    password = fields.String(load_only=True, validate=_not_blank)
    status = fields.String(validate=validate.OneOf(STATUS_VALUES))

    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict) and "email" in data:
            data = dict(data)
            data["email"] = _norm_email(data["email"])
        return data


class UserOutSchema(Schema):
    id = fields.String()
    name = fields.String()
    birth_date = fields.Date()
    rg = fields.String(allow_none=True)
    cpf = fields.String()
    email = fields.String()
    status = fields.Method("get_status")
    created_at = fields.DateTime()
    updated_at = fields.DateTime()

    def get_status(self, obj):
        status = getattr(obj, "status", None)
        return status.value if isinstance(status, UserStatus) else status
