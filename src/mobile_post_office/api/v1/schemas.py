"""
Request bodies for the post endpoints.

Fields are loosely typed on purpose: numeric fields also accept strings
("22.28") and range/format checks are left to the record normalizer, so API
writes and batch imports share one set of rules and error codes.
Unknown fields are rejected.
"""

from pydantic import BaseModel, ConfigDict, Field


class PostWrite(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    mobile_code: str | None = Field(default=None, alias="mobileCode")
    seq: int | str | None = None

    name_en: str | None = Field(default=None, alias="nameEN")
    name_tc: str | None = Field(default=None, alias="nameTC")
    name_sc: str | None = Field(default=None, alias="nameSC")

    district_en: str | None = Field(default=None, alias="districtEN")
    district_tc: str | None = Field(default=None, alias="districtTC")
    district_sc: str | None = Field(default=None, alias="districtSC")

    location_en: str | None = Field(default=None, alias="locationEN")
    location_tc: str | None = Field(default=None, alias="locationTC")
    location_sc: str | None = Field(default=None, alias="locationSC")

    address_en: str | None = Field(default=None, alias="addressEN")
    address_tc: str | None = Field(default=None, alias="addressTC")
    address_sc: str | None = Field(default=None, alias="addressSC")

    open_hour: str | None = Field(default=None, alias="openHour")
    close_hour: str | None = Field(default=None, alias="closeHour")
    day_of_week_code: int | str | None = Field(default=None, alias="dayOfWeekCode")

    latitude: float | str | None = None
    longitude: float | str | None = None

    def supplied(self) -> dict:
        """Only the fields the client actually sent, keyed by attribute name."""
        return self.model_dump(exclude_unset=True)


class PostCreate(PostWrite):
    pass


class PostUpdate(PostWrite):
    pass
