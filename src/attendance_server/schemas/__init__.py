from attendance_server.schemas.command_envelope import schema as command_envelope_schema

def validate_data(data, schema):
    """Simple validation function"""
    from jsonschema import validate as jsonschema_validate
    from jsonschema.exceptions import ValidationError
    try:
        jsonschema_validate(instance=data, schema=schema)
        return True, None
    except ValidationError as e:
        return False, e.message

__all__ = [
    'command_envelope_schema',
    'validate_data',
]
