from pydantic import BaseModel, Field


class ActorSchema(BaseModel):
    """Every mutating call names its actor explicitly."""
    actor_user_id: str = Field(min_length=1)
