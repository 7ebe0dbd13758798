from pydantic import BaseModel


class TrackOut(BaseModel):
    id: str
    name: str
    artist: str
    url: str
    imgsrc: str = ""
