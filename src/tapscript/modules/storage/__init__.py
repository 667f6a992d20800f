from .script_store import ScriptDocument, ScriptStore, ScriptStoreError, upgrade_document

__all__ = ["ScriptDocument", "ScriptStore", "ScriptStoreError", "upgrade_document"]
