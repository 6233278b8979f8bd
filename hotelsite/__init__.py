"""Hotel website back-office: media library, usage tracking and duplicate merging."""
