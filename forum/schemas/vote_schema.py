from marshmallow import EXCLUDE, ValidationError, pre_load, validate

from forum.extensions.extensions import ma


POLARITY_CHOICES = ("like", "dislike", "1", "+1", "-1")
TARGET_FIELDS = ("post_id", "comment_id")


class VoteRequestSchema(ma.Schema):
    class Meta:
        unknown = EXCLUDE

    post_id = ma.Int(load_default=None, strict=True, validate=validate.Range(min=1))
    comment_id = ma.Int(load_default=None, strict=True, validate=validate.Range(min=1))
    polarity = ma.Str(required=True, validate=validate.OneOf(POLARITY_CHOICES))

    @pre_load
    def normalize(self, data, **kwargs):
        data = {key: value for key, value in dict(data).items() if value not in ("", None)}

        # form fields arrive as strings; JSON floats and booleans stay invalid
        for field in TARGET_FIELDS:
            value = data.get(field)
            if isinstance(value, bool):
                raise ValidationError("Not a valid integer.", field_name=field)
            if isinstance(value, str) and value.strip().isdecimal():
                data[field] = int(value.strip())

        # older forms post the polarity as "kind"
        if "polarity" not in data and "kind" in data:
            data["polarity"] = data.pop("kind")

        polarity = data.get("polarity")
        if isinstance(polarity, int) and not isinstance(polarity, bool):
            data["polarity"] = str(polarity)
        elif isinstance(polarity, str):
            data["polarity"] = polarity.strip().lower()
        return data


class VoteResultSchema(ma.Schema):
    target_type = ma.Str()
    target_id = ma.Int()
    state = ma.Str()
    likes = ma.Int()
    dislikes = ma.Int()
