"""Generic CRUD class that works with Pydantic schemas to eliminate boilerplate."""
from flask import request
from shared.validation import Validator, ValidationError
from ..models import db
from ..utils import (
    api_success, api_error, handle_api_exception, current_time, get_json_data, validate_schema
)
import logging
from typing import Optional, Callable, Any, Dict, List


class GenericCRUD:
    """User-scoped CRUD operations driven by Pydantic schemas.

    Resources belong to a ``user_id``. Lists are filtered by it, updates
    carry ``id`` in the body and deletes take ``?id=``. Responses use the
    ``{"success": ..., "data": ...}`` envelope.

    Usage:
        crud = GenericCRUD(
            model=Subcontractor,
            create_schema=SubcontractorCreate,
            update_schema=SubcontractorUpdate,
            response_schema=SubcontractorResponse,
            label='Subcontractor',
            order_by=Subcontractor.company_name.asc(),
        )
    """

    def __init__(
        self,
        model: type,
        create_schema: type,
        update_schema: type,
        response_schema: type,
        label: str,
        order_by: Any = None,
        required_fields: Optional[List[str]] = None,
        list_filter_hook: Optional[Callable[[Any, Dict], Any]] = None,
        cascade_delete_func: Optional[Callable[[str], Dict]] = None
    ):
        """Initialize generic CRUD class.

        Args:
            model: SQLAlchemy model class
            create_schema: Pydantic schema for creation
            update_schema: Pydantic schema for updates (must declare ``id``)
            response_schema: Pydantic schema for responses
            label: Human-readable resource name used in messages
            order_by: Ordering clause for list queries
            required_fields: Fields checked up front so the error names all missing ones
            list_filter_hook: Takes (query, request args), returns a filtered query
            cascade_delete_func: Takes resource_id, deletes children, returns summary dict
        """
        self.model = model
        self.create_schema = create_schema
        self.update_schema = update_schema
        self.response_schema = response_schema
        self.label = label
        self.order_by = order_by
        self.required_fields = required_fields or ['user_id']
        self.list_filter_hook = list_filter_hook
        self.cascade_delete_func = cascade_delete_func
        self.logger = logging.getLogger(model.__tablename__)

    def get_list(self):
        """List resources for the ``user_id`` query parameter."""
        user_id = request.args.get('user_id')
        if not user_id:
            return api_error('User ID is required')

        try:
            query = self.model.query.filter_by(user_id=user_id)
            if self.list_filter_hook:
                query = self.list_filter_hook(query, request.args)
            if self.order_by is not None:
                query = query.order_by(self.order_by)
            return api_success([self.serialize(item) for item in query.all()])
        except ValidationError as e:
            return api_error(str(e))
        except Exception as e:
            return handle_api_exception(e, f'fetch {self.label.lower()}s')

    def get_detail(self, resource_id):
        """Get single resource by ID, 404 when missing."""
        resource = db.session.get(self.model, resource_id)
        if resource is None:
            return api_error(f'{self.label} not found', 404)
        return api_success(self.serialize(resource))

    def create(self):
        """Create a new resource with automatic Pydantic validation."""
        try:
            data = get_json_data()
            Validator.validate_required_fields(data, self.required_fields)
            validated = validate_schema(self.create_schema, data)

            at = current_time()
            resource = self.model(**validated.model_dump(), created_at=at, updated_at=at)
            db.session.add(resource)
            db.session.commit()

            self.logger.info(f"Created {self.label.lower()}: {resource.id}")
            return api_success(self.serialize(resource), 201)

        except ValidationError as e:
            self.logger.warning(f"Validation error in {self.label.lower()} creation: {e}")
            return api_error(str(e))
        except Exception as e:
            return handle_api_exception(e, f'create {self.label.lower()}')

    def update(self):
        """Apply the fields present in the body to the resource named by ``id``.

        A missing resource is a no-op that returns ``data: null``.
        """
        try:
            data = get_json_data()
            if Validator.is_blank(data.get('id')):
                raise ValidationError(f'{self.label} ID is required')
            validated = validate_schema(self.update_schema, data)
            changes = validated.changes(exclude={'id'})
            if not changes:
                raise ValidationError('No valid fields to update')

            resource = db.session.get(self.model, validated.id)
            if resource is None:
                self.logger.info(f"Update of missing {self.label.lower()} {validated.id} ignored")
                return api_success(None)

            for key, value in changes.items():
                setattr(resource, key, value)
            resource.updated_at = current_time()
            db.session.commit()

            self.logger.info(f"Updated {self.label.lower()}: {resource.id}")
            return api_success(self.serialize(resource))

        except ValidationError as e:
            self.logger.warning(f"Validation error in {self.label.lower()} update: {e}")
            return api_error(str(e))
        except Exception as e:
            return handle_api_exception(e, f'update {self.label.lower()}')

    def delete(self):
        """Delete the resource named by the ``id`` query parameter."""
        resource_id = request.args.get('id')
        if not resource_id:
            return api_error(f'{self.label} ID is required')

        try:
            summary = {}
            if self.cascade_delete_func:
                summary = self.cascade_delete_func(resource_id)
            summary[self.model.__tablename__] = self.model.query.filter_by(id=resource_id).delete(synchronize_session=False)
            db.session.commit()
            db.session.expire_all()

            self.logger.info(f"Deleted {self.label.lower()}: {resource_id}")
            return api_success({'summary': summary}, message=f'{self.label} deleted')
        except Exception as e:
            return handle_api_exception(e, f'delete {self.label.lower()}')

    def serialize(self, resource):
        """Serialize resource using the Pydantic response schema."""
        return self.response_schema.model_validate(resource).model_dump(mode='json')


def register_crud_routes(bp, crud_instance, resource_name):
    """Register standard CRUD routes for a blueprint.

    Args:
        bp: Flask Blueprint instance
        crud_instance: GenericCRUD instance
        resource_name: URL segment (e.g., 'jobs', 'subcontractors')

    This function registers:
        GET /api/{resource_name}?user_id= - List resources
        GET /api/{resource_name}/<id> - Get single resource
        POST /api/{resource_name} - Create resource
        PUT /api/{resource_name} - Update resource (id in body)
        DELETE /api/{resource_name}?id= - Delete resource
    """
    endpoint = resource_name.replace('-', '_')

    bp.add_url_rule(f'/{resource_name}', f'list_{endpoint}', crud_instance.get_list, methods=['GET'])
    bp.add_url_rule(f'/{resource_name}/<string:resource_id>', f'get_{endpoint}', crud_instance.get_detail, methods=['GET'])
    bp.add_url_rule(f'/{resource_name}', f'create_{endpoint}', crud_instance.create, methods=['POST'])
    bp.add_url_rule(f'/{resource_name}', f'update_{endpoint}', crud_instance.update, methods=['PUT'])
    bp.add_url_rule(f'/{resource_name}', f'delete_{endpoint}', crud_instance.delete, methods=['DELETE'])
