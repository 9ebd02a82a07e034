"""Course platform: the deletion engine wired into a FastAPI app and a TaskIQ worker."""
