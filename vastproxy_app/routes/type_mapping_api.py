from flask import Blueprint, jsonify, request

from type_mapping import OperationResult
from type_mapping.manager import CONFLICT, FETCH, INTEGRITY, INVALID, NOT_FOUND, STORAGE
from vastproxy_app.extensions import get_registry, get_type_mapping_manager
from vastproxy_app.log import log
from .validators import json_object, parse_type_id, validate_source_code, validate_url

type_mapping_bp = Blueprint('type_mapping_api', __name__, url_prefix='/api/type_mapping')

_STATUS = {
    NOT_FOUND: 404,
    CONFLICT: 409,
    INTEGRITY: 409,
    INVALID: 400,
    STORAGE: 500,
    FETCH: 502,
}


def _respond(result: OperationResult):
    status = 200 if result.success else _STATUS.get(result.error_code, 400)
    return jsonify(result.to_dict()), status


def _fail(message: str, status: int = 400):
    return jsonify({'success': False, 'message': message}), status


# =============================================================================
# LOOKUPS
# =============================================================================

@type_mapping_bp.route('', methods=['GET'])
def lookup():
    """
    Query the mapping.

    - no params: all global types and source mappings
    - ?source=X: that source's mapping
    - ?source=X&global_type=G: source types filed under G
    - ?source=X&source_type_id=N: global type of native type N
    """
    manager = get_type_mapping_manager()
    source_code = request.args.get('source', '')
    global_type = request.args.get('global_type', '')
    source_type_id = request.args.get('source_type_id', '')

    if not source_code:
        document = manager.get_document().to_dict()
        return jsonify({'success': True, 'data': {
            'global_types': document['global_types'],
            'source_mappings': document['source_mappings'],
        }})

    if global_type:
        data = manager.describe_global_type(source_code, global_type)
        if data is None:
            return _fail('Mapping not found', 404)
        return jsonify({'success': True, 'data': data})

    if source_type_id:
        type_id, error = parse_type_id(source_type_id)
        if error:
            return _fail(error)
        data = manager.describe_source_type(source_code, type_id)
        if data is None:
            return _fail('Mapping not found', 404)
        return jsonify({'success': True, 'data': data})

    return _respond(manager.get_source_mapping(source_code))


# =============================================================================
# GLOBAL TYPES
# =============================================================================

@type_mapping_bp.route('/global_types', methods=['GET'])
def list_global_types():
    return _respond(get_type_mapping_manager().list_global_types())


@type_mapping_bp.route('/global_types/<type_id>', methods=['GET'])
def get_global_type(type_id: str):
    return _respond(get_type_mapping_manager().get_global_type(type_id))


@type_mapping_bp.route('/global_types', methods=['POST', 'PUT'])
def save_global_type():
    payload = json_object(request.get_json(silent=True))
    if payload is None:
        return _fail('Invalid JSON')

    manager = get_type_mapping_manager()
    if request.method == 'POST':
        result = manager.create_global_type(payload)
    else:
        result = manager.update_global_type(payload)
    if result.success:
        log(f"🏷️ Global type saved: {payload.get('id')}")
    return _respond(result)


@type_mapping_bp.route('/global_types', methods=['DELETE'])
def delete_global_type():
    type_id = request.args.get('id', '')
    if not type_id:
        return _fail('Missing type ID')
    result = get_type_mapping_manager().delete_global_type(type_id)
    if result.success:
        log(f"🗑️ Global type deleted: {type_id}")
    return _respond(result)


# =============================================================================
# SOURCE MAPPINGS
# =============================================================================

@type_mapping_bp.route('/source_mappings', methods=['GET'])
def list_source_mappings():
    return _respond(get_type_mapping_manager().list_source_mappings())


@type_mapping_bp.route('/source_mappings/<source_code>', methods=['GET'])
def get_source_mapping(source_code: str):
    return _respond(get_type_mapping_manager().get_source_mapping(source_code))


@type_mapping_bp.route('/source_mappings', methods=['POST', 'PUT'])
def save_source_mapping():
    source_code = request.args.get('source_code', '')
    error = validate_source_code(source_code)
    if error:
        return _fail(error)
    payload = json_object(request.get_json(silent=True))
    if payload is None:
        return _fail('Invalid JSON')

    manager = get_type_mapping_manager()
    if request.method == 'POST':
        result = manager.create_source_mapping(source_code, payload)
    else:
        result = manager.update_source_mapping(source_code, payload)
    if result.success:
        log(f"🗂️ Source mapping saved: {source_code}")
    return _respond(result)


@type_mapping_bp.route('/source_mappings', methods=['DELETE'])
def delete_source_mapping():
    source_code = request.args.get('source_code', '')
    error = validate_source_code(source_code)
    if error:
        return _fail(error)
    result = get_type_mapping_manager().delete_source_mapping(source_code)
    if result.success:
        log(f"🗑️ Source mapping deleted: {source_code}")
    return _respond(result)


# =============================================================================
# SYNC
# =============================================================================

@type_mapping_bp.route('/auto_fetch', methods=['POST'])
def auto_fetch():
    """Fetch a source's categories and merge new ones into its mapping."""
    source_code = request.args.get('source_code', '')
    error = validate_source_code(source_code)
    if error:
        return _fail(error)

    source_url = request.args.get('source_url', '')
    if not source_url:
        # Fall back to the URL configured in sources.json
        source = get_registry().get(source_code)
        source_url = source.url if source else ''
    error = validate_url(source_url)
    if error:
        return _fail(error)

    log(f"🔄 Auto fetching types for {source_code}")
    return _respond(get_type_mapping_manager().auto_fetch(source_code, source_url))


@type_mapping_bp.route('/init_all_sources', methods=['POST'])
def init_all_sources():
    """Create mappings for every enabled source that has none yet."""
    registry = get_registry()
    log(f"🔄 Initializing type mappings for {len(registry.sources)} sources")
    result = get_type_mapping_manager().initialize_all(registry.sources)
    log(f"✅ {result.message}")
    return _respond(result)
