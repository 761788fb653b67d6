"""Search index, data source and indexer definitions for the properties index."""

from __future__ import annotations

SUGGESTER_FIELDS = ["Street", "Locality", "Town", "District", "County"]


def _field(name: str, field_type: str, **flags: bool) -> dict:
    return {
        "name": name,
        "type": field_type,
        "key": flags.get("key", False),
        "searchable": flags.get("searchable", False),
        "filterable": flags.get("filterable", False),
        "sortable": flags.get("sortable", False),
        "facetable": flags.get("facetable", False),
        "retrievable": True,
    }


INDEX_FIELDS = [
    _field("TransactionId", "Edm.String", key=True),
    _field("Price", "Edm.Int32", sortable=True, facetable=True, filterable=True),
    _field("DateOfTransfer", "Edm.DateTimeOffset", sortable=True),
    _field("PostCode", "Edm.String", searchable=True, sortable=True),
    _field("PropertyType", "Edm.String", facetable=True, filterable=True),
    _field("Build", "Edm.String", facetable=True, filterable=True),
    _field("Contract", "Edm.String", facetable=True, filterable=True),
    _field("Building", "Edm.String", sortable=True),
    _field("Street", "Edm.String", searchable=True, sortable=True),
    _field("Locality", "Edm.String", searchable=True, facetable=True, filterable=True),
    _field("Town", "Edm.String", searchable=True, sortable=True, facetable=True),
    _field("District", "Edm.String", searchable=True, facetable=True, filterable=True),
    _field("County", "Edm.String", searchable=True, facetable=True, filterable=True),
    _field("Geo", "Edm.GeographyPoint", sortable=True, filterable=True),
]

INDEXER_PARSING = {
    "csv": {
        "parsingMode": "delimitedText",
        "firstLineContainsHeaders": True,
        "indexedFileNameExtensions": ".csv",
    },
    "json": {
        "parsingMode": "jsonLines",
        "indexedFileNameExtensions": ".json",
    },
}


def index_definition(index_name: str, suggester_name: str) -> dict:
    return {
        "name": index_name,
        "fields": INDEX_FIELDS,
        "suggesters": [
            {
                "name": suggester_name,
                "searchMode": "analyzingInfixMatching",
                "sourceFields": SUGGESTER_FIELDS,
            }
        ],
    }


def data_source_definition(name: str, connection_string: str, container: str) -> dict:
    return {
        "name": name,
        "type": "azureblob",
        "credentials": {"connectionString": connection_string},
        "container": {"name": container},
    }


def indexer_name(index_name: str, export_format: str) -> str:
    return f"{index_name}-{export_format}-indexer"


def indexer_definition(
    index_name: str,
    data_source_name: str,
    export_format: str,
    interval: str,
) -> dict:
    return {
        "name": indexer_name(index_name, export_format),
        "dataSourceName": data_source_name,
        "targetIndexName": index_name,
        "schedule": {"interval": interval},
        "parameters": {"configuration": dict(INDEXER_PARSING[export_format])},
    }
