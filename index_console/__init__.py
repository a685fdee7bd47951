"""
Index console core package.

The `submission` subpackage drives the interactive "post JSON" workflow:
selection guard, JSON validation, async submission to the indexing
endpoint and status reporting. The `catalog` subpackage is the server
side: the schema/index registry, the submission log and the Whoosh-backed
document indexer used by the HTTP API.
"""
