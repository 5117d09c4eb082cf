"""Message-driven pipeline turning chat links into notes.

Flow: RawMessage -> LinkDetected -> ContentExtracted -> ContentSummarized
-> TagsGenerated -> NoteReady, each hop an asynchronous handoff through
the PipelineBus.
"""
