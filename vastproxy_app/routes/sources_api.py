from flask import Blueprint, jsonify

from vastproxy_app.extensions import get_registry, get_type_mapping_manager

sources_bp = Blueprint('sources_api', __name__, url_prefix='/api/sources')


@sources_bp.route('')
def get_sources():
    """Get list of configured sources and whether each has a type mapping."""
    registry = get_registry()
    manager = get_type_mapping_manager()
    data = []
    for source in registry.sources:
        entry = source.to_dict()
        entry['has_type_mapping'] = manager.has_source(source.code)
        data.append(entry)
    return jsonify({'success': True, 'data': data, 'count': len(data)})
