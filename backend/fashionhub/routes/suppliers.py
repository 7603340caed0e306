# Overview: Flask API routes for supplier operations; parses input and returns JSON responses.

from flask import Blueprint, request

from ..decorators import require_auth, require_role
from ..models import Supplier
from ..models.auth import ROLE_ADMIN
from ..services import supplier_service
from ..services.supplier_service import SupplierNotFoundError
from ..validation import (
    WritePolicy,
    validate_payload,
    supplier_rules,
    ValidationError,
    ConflictError,
)

SUPPLIER_POLICY = WritePolicy(
    model=Supplier,
    writable_fields=frozenset(supplier_service.SUPPLIER_MUTABLE_FIELDS),
    required_on_create=frozenset({"name"}),
    rules=supplier_rules,
)

suppliers_bp = Blueprint("suppliers", __name__, url_prefix="/api/suppliers")


@suppliers_bp.get("")
@require_auth
@require_role(ROLE_ADMIN)
def list_suppliers_route():
    """
    Query params:
    - status: active | inactive (optional)
    - search: matches name, contact person or city (optional)
    """
    suppliers = supplier_service.list_suppliers(
        status=request.args.get("status"),
        search=request.args.get("search"),
    )
    return {"items": [s.to_dict() for s in suppliers], "count": len(suppliers)}


@suppliers_bp.post("")
@require_auth
@require_role(ROLE_ADMIN)
def create_supplier_route():
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(payload, SUPPLIER_POLICY, partial=False)
    except ValidationError as e:
        return {"error": str(e)}, 400

    supplier = supplier_service.create_supplier(patch=patch)
    return supplier.to_dict(), 201


@suppliers_bp.get("/<int:supplier_id>")
@require_auth
@require_role(ROLE_ADMIN)
def get_supplier_route(supplier_id: int):
    try:
        return supplier_service.get_supplier(supplier_id).to_dict()
    except SupplierNotFoundError as e:
        return {"error": str(e)}, 404


@suppliers_bp.put("/<int:supplier_id>")
@require_auth
@require_role(ROLE_ADMIN)
def update_supplier_route(supplier_id: int):
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(payload, SUPPLIER_POLICY, partial=True)
    except ValidationError as e:
        return {"error": str(e)}, 400

    try:
        supplier = supplier_service.update_supplier(supplier_id=supplier_id, patch=patch)
    except SupplierNotFoundError as e:
        return {"error": str(e)}, 404
    return supplier.to_dict()


@suppliers_bp.delete("/<int:supplier_id>")
@require_auth
@require_role(ROLE_ADMIN)
def delete_supplier_route(supplier_id: int):
    try:
        supplier_service.delete_supplier(supplier_id=supplier_id)
    except SupplierNotFoundError as e:
        return {"error": str(e)}, 404
    except ConflictError as e:
        return {"error": str(e)}, 409
    return {"message": "Supplier deleted successfully"}
