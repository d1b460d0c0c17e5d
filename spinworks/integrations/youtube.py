from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

# YouTube deps are optional (only required when UPLOAD_BACKEND is not 'mock').
_GOOGLE_IMPORT_ERROR: Exception | None = None
try:
    from googleapiclient.discovery import build
    from googleapiclient.http import MediaFileUpload
    from google_auth_oauthlib.flow import InstalledAppFlow
    from google.auth.transport.requests import Request
    from google.oauth2.credentials import Credentials
except Exception as e:  # ImportError in most cases
    _GOOGLE_IMPORT_ERROR = e
    build = None  # type: ignore[assignment]
    MediaFileUpload = None  # type: ignore[assignment]
    InstalledAppFlow = None  # type: ignore[assignment]
    Request = None  # type: ignore[assignment]
    Credentials = None  # type: ignore[assignment]

# playlist management needs the full scope, not just youtube.upload
SCOPES = ["https://www.googleapis.com/auth/youtube"]

MUSIC_CATEGORY_ID = "10"


@dataclass(frozen=True)
class UploadResult:
    video_id: str

    @property
    def url(self) -> str:
        return f"https://www.youtube.com/watch?v={self.video_id}"


class YouTubeClient:
    def __init__(self, *, client_secret_json: str, token_json: str):
        if _GOOGLE_IMPORT_ERROR is not None:
            raise RuntimeError(
                'YouTube dependencies are missing. Install: '
                'pip install google-api-python-client google-auth google-auth-oauthlib'
            )

        creds = None
        if Path(token_json).exists():
            creds = Credentials.from_authorized_user_file(token_json, SCOPES)

        # Prefer refresh-token flow for unattended operation.
        if creds is None or not creds.valid:
            if creds is not None and creds.expired and creds.refresh_token:
                creds.refresh(Request())
            else:
                flow = InstalledAppFlow.from_client_secrets_file(client_secret_json, SCOPES)
                creds = flow.run_local_server(port=0)

            Path(token_json).parent.mkdir(parents=True, exist_ok=True)
            Path(token_json).write_text(creds.to_json(), encoding="utf-8")

        self._yt = build("youtube", "v3", credentials=creds, cache_discovery=False)

    def upload_video(
        self,
        *,
        video_path: Path,
        title: str,
        description: str,
        tags: List[str],
        privacy_status: str = "private",
    ) -> UploadResult:
        body = {
            "snippet": {
                "title": title,
                "description": description,
                "tags": [t.lstrip("#") for t in tags if t],
                "categoryId": MUSIC_CATEGORY_ID,
            },
            "status": {"privacyStatus": privacy_status, "selfDeclaredMadeForKids": False},
        }
        media = MediaFileUpload(str(video_path), chunksize=8 * 1024 * 1024, resumable=True)
        req = self._yt.videos().insert(part="snippet,status", body=body, media_body=media)

        resp = None
        while resp is None:
            _, resp = req.next_chunk()

        return UploadResult(video_id=resp["id"])

    def find_playlist(self, title: str) -> Optional[str]:
        page_token = None
        while True:
            resp = self._yt.playlists().list(
                part="snippet", mine=True, maxResults=50, pageToken=page_token
            ).execute()
            for item in resp.get("items", []):
                if item.get("snippet", {}).get("title") == title:
                    return item["id"]
            page_token = resp.get("nextPageToken")
            if not page_token:
                return None

    def ensure_playlist(self, title: str, *, privacy_status: str = "public") -> str:
        existing = self.find_playlist(title)
        if existing:
            return existing
        resp = self._yt.playlists().insert(
            part="snippet,status",
            body={
                "snippet": {"title": title, "description": f"Tracks from {title}"},
                "status": {"privacyStatus": privacy_status},
            },
        ).execute()
        return resp["id"]

    def add_to_playlist(self, *, playlist_id: str, video_id: str) -> None:
        self._yt.playlistItems().insert(
            part="snippet",
            body={
                "snippet": {
                    "playlistId": playlist_id,
                    "resourceId": {"kind": "youtube#video", "videoId": video_id},
                }
            },
        ).execute()
