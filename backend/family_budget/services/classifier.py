"""
Item classification with a hosted language model.

The model gets the category list (names and descriptions) and the item
names and answers with a JSON object mapping item ids to category ids.
Items the model skipped or mapped to an unknown category go to the
"Прочее" category. Any failure yields an empty mapping so callers leave
items uncategorized.
"""

import json
import re
from dataclasses import dataclass
from typing import Any

import anthropic

from ..logging import get_logger

logger = get_logger(__name__)

FALLBACK_CATEGORY_NAME = "Прочее"

_JSON_OBJECT_RE = re.compile(r"\{[\s\S]*\}")


@dataclass
class ClassifiableItem:
    id: int
    name: str
    qty: float = 1
    price: int = 0


@dataclass
class CategoryHint:
    id: int
    name: str
    description: str = ""


class ClassificationError(Exception):
    """The model reply could not be turned into a mapping."""


PROMPT_TEMPLATE = """Ты эксперт по анализу и классификации товаров из чеков магазинов.

ТВОЯ ЗАДАЧА: Классифицируй каждый товар по подходящей категории, ВНИМАТЕЛЬНО читая названия и описания категорий.

ДОСТУПНЫЕ КАТЕГОРИИ (читай ВНИМАТЕЛЬНО названия и описания):
{categories}

ТОВАРЫ ДЛЯ КЛАССИФИКАЦИИ:
{items}

ПРАВИЛА КЛАССИФИКАЦИИ:

1. ВНИМАТЕЛЬНО читай название каждой категории и её описание
2. Анализируй название товара по ключевым словам: НАПРИМЕР
   - Овощи, фрукты: лук, огурцы, помидоры, яблоки, бананы, картофель, морковь
   - Белок: мясо, рыба, курица, говядина, свинина, фарш, яйца, колбаса
   - Молочная продукция: молоко, сыр, творог, йогурт, кефир, сметана, масло сливочное
   - Бакалея: крупы, мука, сахар, соль, макароны, рис, гречка, хлеб
   - Чай, кофе: чай (любой вид), кофе (любой вид), какао
   - Джанг-фуд: чипсы, сладости, печенье, конфеты, мармелад, снеки
   - Бытовая химия: моющие средства, пакеты, средства гигиены, туалетная бумага
   - Прочее: всё что не подходит к другим категориям

3. СТРОГО следуй названиям категорий - если категория называется "Овощи, фрукты", то туда овощи и фрукты

4. Если сомневаешься между двумя категориями - выбирай более специфичную

5. Возвращай ТОЛЬКО JSON без объяснений:

ФОРМАТ ОТВЕТА (СТРОГО):
{{
  "ID_товара": ID_категории,
  "ID_товара": ID_категории
}}

Пример:
{{
  "1": 10,
  "2": 8
}}

ВАЖНО: Отвечай ТОЛЬКО JSON объектом, без дополнительного текста!"""


def build_prompt(items: list[ClassifiableItem], categories: list[CategoryHint]) -> str:
    categories_text = "\n".join(
        f'- "{c.name}" (ID: {c.id}): {c.description}' for c in categories
    )
    items_text = "\n".join(f'"{i.name}" (ID: {i.id})' for i in items)
    return PROMPT_TEMPLATE.format(categories=categories_text, items=items_text)


def extract_mapping(text: str) -> dict[str, Any]:
    """Pull the JSON object out of a model reply that may contain extra text."""
    match = _JSON_OBJECT_RE.search(text)
    if not match:
        raise ClassificationError("No JSON object in model reply")
    try:
        data = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        raise ClassificationError(f"Invalid JSON in model reply: {e}") from e
    if not isinstance(data, dict):
        raise ClassificationError("Model reply is not a JSON object")
    return data


def fallback_category_id(categories: list[CategoryHint]) -> int | None:
    """The "Прочее" category, or the last category by name if there is none."""
    for category in categories:
        if category.name == FALLBACK_CATEGORY_NAME:
            return category.id
    if not categories:
        return None
    return max(categories, key=lambda c: (c.name.casefold(), c.id)).id


def _as_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def resolve_classification(
    raw: dict[str, Any],
    items: list[ClassifiableItem],
    categories: list[CategoryHint],
) -> dict[int, int]:
    """
    Final item -> category mapping for the requested items.

    Valid assignments are kept; missing or unknown ones get the fallback
    category. Entries for ids that were not requested are dropped.
    """
    known = {c.id for c in categories}
    fallback = fallback_category_id(categories)
    result: dict[int, int] = {}

    for item in items:
        category_id = _as_int(raw.get(str(item.id), raw.get(item.id)))
        if category_id in known:
            result[item.id] = category_id
        elif fallback is not None:
            logger.info(f"'{item.name}' has no valid category from the model, using fallback")
            result[item.id] = fallback
    return result


class ItemClassifier:
    def __init__(
        self,
        api_key: str | None,
        model: str,
        client: Any = None,
        max_tokens: int = 1000,
        temperature: float = 0.3,
    ):
        self.api_key = api_key
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self._client = client

    def _get_client(self):
        """Create the Anthropic client on first use."""
        if self._client is None:
            if not self.api_key:
                raise ClassificationError("CLAUDE_API_KEY is not set")
            self._client = anthropic.Anthropic(api_key=self.api_key)
        return self._client

    def _ask_model(self, prompt: str) -> str:
        response = self._get_client().messages.create(
            model=self.model,
            max_tokens=self.max_tokens,
            temperature=self.temperature,
            messages=[{"role": "user", "content": prompt}],
        )
        if not response.content or response.content[0].type != "text":
            raise ClassificationError("Unexpected reply type from model")
        return response.content[0].text

    def classify(
        self,
        items: list[ClassifiableItem],
        categories: list[CategoryHint],
    ) -> dict[int, int]:
        """Map item ids to category ids. Returns {} on any failure."""
        if not items or not categories:
            return {}

        logger.info(f"Classifying {len(items)} items into {len(categories)} categories")
        try:
            reply = self._ask_model(build_prompt(items, categories))
            logger.debug(f"Model reply: {reply}")
            mapping = resolve_classification(extract_mapping(reply), items, categories)
        except (ClassificationError, anthropic.AnthropicError) as e:
            logger.error(f"Item classification failed: {e}")
            return {}
        except Exception:
            logger.exception("Unexpected error during item classification")
            return {}

        logger.info(f"Classified {len(mapping)} items")
        return mapping
