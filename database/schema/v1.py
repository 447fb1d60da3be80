"""Schema v1 - Initial document store schema.

Every logical collection is stored as its own table holding one JSONB
document per key:
- trusted_sources: provisioned upload agents keyed by API key digest
- blacklist: banned uploader digests
- content: anonymized character/retainer names
- recent_data: current listings per (item, world)
- extended_history: append-only sale log per (item, world)
- extra_data: daily upload counters and the item recency index
"""


def _document_table(name, indexes=None):
    return {
        'name': name,
        'columns': [
            {'name': 'key', 'type': 'TEXT', 'primary_key': True},
            {'name': 'doc', 'type': 'JSONB', 'nullable': False, 'default': "'{}'::JSONB"},
            {'name': 'created_at', 'type': 'TIMESTAMP', 'nullable': False, 'default': 'now()'},
            {'name': 'updated_at', 'type': 'TIMESTAMP', 'nullable': False, 'default': 'now()'}
        ],
        'indexes': indexes or []
    }


schema = {
    'version': 1,
    'tables': [
        _document_table('trusted_sources'),
        _document_table('blacklist'),
        _document_table('content'),
        _document_table('recent_data', indexes=[
            {'name': 'idx_recent_data_item', 'columns': ["(doc->>'itemID')"]},
            {'name': 'idx_recent_data_dc', 'columns': ["(doc->>'dcName')", "(doc->>'itemID')"]}
        ]),
        _document_table('extended_history', indexes=[
            {'name': 'idx_extended_history_dc', 'columns': ["(doc->>'dcName')", "(doc->>'itemID')"]}
        ]),
        _document_table('extra_data', indexes=[
            {'name': 'idx_extra_data_set', 'columns': ["(doc->>'setName')"]}
        ])
    ],
    'migrations': []
}
