"""Record schemas for the two pairing stages.

Field names match the camelCase keys requested in the prompts
(see :mod:`src.pipeline.prompts`) and the aliases of the typed models in
:mod:`src.models.pairing`.
"""

from src.services.output_recovery import FieldKind, FieldSpec, ObjectSchema, RecordSchema

DEFAULT_DIFFICULTY = 3
DEFAULT_COOKING_TIME = 30
DEFAULT_BEVERAGE_TIME = 5
DEFAULT_PAIRING_SCORE = 5

DISH_SCHEMA = RecordSchema(
    fields={
        "name": FieldSpec(FieldKind.STRING, ""),
        "description": FieldSpec(FieldKind.STRING, ""),
        "cuisine": FieldSpec(FieldKind.STRING, ""),
        "requiredIngredients": FieldSpec(FieldKind.STRING_LIST, []),
        "cookingTime": FieldSpec(FieldKind.INTEGER, DEFAULT_COOKING_TIME, minimum=0),
        "difficulty": FieldSpec(FieldKind.INTEGER, DEFAULT_DIFFICULTY, minimum=1, maximum=5),
        "steps": FieldSpec(FieldKind.STRING_LIST, []),
        "source": FieldSpec(FieldKind.STRING, None, required=False),
        "tags": FieldSpec(FieldKind.STRING_LIST, [], required=False),
    }
)

BEVERAGE_SCHEMA = RecordSchema(
    fields={
        "name": FieldSpec(FieldKind.STRING, ""),
        "description": FieldSpec(FieldKind.STRING, ""),
        "ingredients": FieldSpec(FieldKind.STRING_LIST, []),
        "steps": FieldSpec(FieldKind.STRING_LIST, []),
        "category": FieldSpec(FieldKind.STRING, ""),
        "glassType": FieldSpec(FieldKind.STRING, ""),
        "technique": FieldSpec(FieldKind.STRING, ""),
        "garnish": FieldSpec(FieldKind.STRING, "", required=False),
        "difficulty": FieldSpec(FieldKind.INTEGER, DEFAULT_DIFFICULTY, minimum=1, maximum=5),
        "estimatedTime": FieldSpec(FieldKind.INTEGER, DEFAULT_BEVERAGE_TIME, minimum=0),
    }
)

PAIRING_REASON_SCHEMA = RecordSchema(
    fields={
        "dishId": FieldSpec(FieldKind.STRING, ""),
        "beverageId": FieldSpec(FieldKind.STRING, ""),
        "reason": FieldSpec(FieldKind.STRING, ""),
        "pairingType": FieldSpec(FieldKind.STRING, ""),
        "score": FieldSpec(FieldKind.INTEGER, DEFAULT_PAIRING_SCORE, minimum=1, maximum=10),
    }
)

PAIRING_RESULT_SCHEMA = ObjectSchema(
    collections={
        "beverages": BEVERAGE_SCHEMA,
        "pairingReasons": PAIRING_REASON_SCHEMA,
    },
    scalars={
        "overallSuggestion": FieldSpec(FieldKind.STRING, ""),
    },
)
