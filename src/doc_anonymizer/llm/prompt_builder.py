"""
Prompt builder for rewrite requests.

Responsible for:
- Loading and rendering the two Jinja2 instruction sets
  (redaction_system.txt for pass 1, verification_system.txt for pass 2)
- Injecting the PII category -> tag table into both
- Constructing LLMGenerationRequest objects for a chunk of text
"""

from pathlib import Path
from typing import Optional
from jinja2 import Environment, FileSystemLoader, StrictUndefined
import structlog

from doc_anonymizer.models.enums import PassName, PiiCategory
from doc_anonymizer.models.llm_models import LLMGenerationRequest


logger = structlog.get_logger(__name__)

REDACTION_TEMPLATE = "redaction_system.txt"
VERIFICATION_TEMPLATE = "verification_system.txt"

# Per-category guidance rendered into the instruction sets.
CATEGORY_GUIDANCE: dict[PiiCategory, dict] = {
    PiiCategory.NAME: {
        "title": "NAMES AND FULL NAMES",
        "short": "Any first names, surnames, patronymics (in any grammatical case), initials (A.A., I.I.)",
        "rules": [
            'Full names: "Ivanov Ivan Ivanovich" -> [NAME]',
            'Partial: "Ivanov I.I.", "I.I. Ivanov", "Ivan Ivanov" -> [NAME]',
            'First name or surname only: "Ivan", "Maria", "Petrova" -> [NAME]',
            'Initials: "I.I.", "A.S." -> [NAME]',
            'In signatures: "Director Ivanov", "Signed: Petrov" -> Director [NAME], Signed: [NAME]',
            'Declined forms: "Ivanovu", "Petrovoy", "Sidorovym" -> [NAME]',
            'Foreign names: "John Smith", "Maria Garcia" -> [NAME]',
        ],
    },
    PiiCategory.PHONE: {
        "title": "PHONE NUMBERS",
        "short": "Phone numbers",
        "rules": [
            "Any format: country codes, area codes, mobile, landline",
            'Examples: "+7 (999) 123-45-67", "89991234567", "8-999-123-45-67"',
        ],
    },
    PiiCategory.EMAIL: {
        "title": "EMAIL ADDRESSES",
        "short": "Email addresses",
        "rules": ["Any email address: example@mail.com, test@company.org"],
    },
    PiiCategory.ADDRESS: {
        "title": "ADDRESSES",
        "short": "Postal addresses",
        "rules": [
            "Full addresses with city, street, building",
            'Partial: "5 Lenin St.", "Moscow"',
            'Postal codes: "123456"',
        ],
    },
    PiiCategory.DOCUMENT: {
        "title": "IDENTITY AND REGISTRATION DOCUMENTS",
        "short": "Document numbers",
        "rules": [
            "Passport: series, number, issuing authority, subdivision code",
            "Taxpayer and social insurance numbers",
            "Company registration numbers",
            "Contract numbers with dates",
            "Driving licences",
        ],
    },
    PiiCategory.BIRTH_DATE: {
        "title": "DATES OF BIRTH",
        "short": "Dates of birth",
        "rules": ['"01.01.1990", "1 January 1990", "born 01.01.1990"'],
    },
    PiiCategory.FINANCIAL: {
        "title": "FINANCIAL DETAILS",
        "short": "Bank details",
        "rules": [
            "Bank card numbers (16 digits)",
            "Account numbers (20 digits)",
            "Bank identifier and correspondent account codes",
        ],
    },
}


class PromptBuilder:
    """
    Build rewrite requests for both pipeline passes.

    Templates are rendered once at construction: the instruction sets do not
    depend on the chunk, only the prompt (input text) changes per request.
    """

    def __init__(
        self,
        templates_dir: Path,
        default_model: str = "qwen2.5:7b",
        default_temperature: float = 0.05,
        default_max_tokens: int = 8192,
        default_num_ctx: Optional[int] = None,
    ):
        """
        Initialize prompt builder.

        Args:
            templates_dir: Directory containing the instruction templates
            default_model: Model name put on every request
            default_temperature: Sampling temperature
            default_max_tokens: Max tokens to generate
            default_num_ctx: Context window sent with every request
        """
        self.templates_dir = Path(templates_dir)
        self.default_model = default_model
        self.default_temperature = default_temperature
        self.default_max_tokens = default_max_tokens
        self.default_num_ctx = default_num_ctx

        self.jinja_env = Environment(
            loader=FileSystemLoader(str(self.templates_dir)),
            trim_blocks=True,
            lstrip_blocks=True,
            undefined=StrictUndefined,
            autoescape=False  # We're generating prompts, not HTML
        )

        try:
            context = self._template_context()
            self.redaction_instructions = (
                self.jinja_env.get_template(REDACTION_TEMPLATE).render(**context).strip()
            )
            self.verification_instructions = (
                self.jinja_env.get_template(VERIFICATION_TEMPLATE).render(**context).strip()
            )
        except Exception as e:
            logger.error("Failed to load prompt templates", error=str(e), templates_dir=str(self.templates_dir))
            raise

        logger.info(
            "PromptBuilder initialized",
            templates_dir=str(self.templates_dir),
            model=default_model,
            temperature=default_temperature,
            redaction_prompt_length=len(self.redaction_instructions),
            verification_prompt_length=len(self.verification_instructions),
        )

    @staticmethod
    def _template_context() -> dict:
        categories = [
            {"tag": category.tag, **CATEGORY_GUIDANCE[category]}
            for category in PiiCategory
        ]
        return {
            "categories": categories,
            "tags": [category.tag for category in PiiCategory],
            "name_tag": PiiCategory.NAME.tag,
        }

    def instructions_for(self, pass_name: PassName) -> str:
        """Return the rendered instruction set for a pass."""
        if pass_name is PassName.REDACTION:
            return self.redaction_instructions
        return self.verification_instructions

    def build_request(
        self,
        pass_name: PassName,
        text: str,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
    ) -> LLMGenerationRequest:
        """
        Build the rewrite request for one chunk.

        Args:
            pass_name: Which instruction set to use
            text: Chunk text to rewrite
            model: Override default model
            temperature: Override default temperature

        Returns:
            LLMGenerationRequest ready for BaseLLMClient.generate()
        """
        return LLMGenerationRequest(
            system=self.instructions_for(pass_name),
            prompt=text,
            model=model or self.default_model,
            temperature=temperature if temperature is not None else self.default_temperature,
            max_tokens=self.default_max_tokens,
            num_ctx=self.default_num_ctx,
        )
