"""FileStage engine: stage, preview, upload and browse chat attachments."""
