import logging
from typing import Optional

from openai import APIError, AsyncOpenAI

from config import Settings
from services.prompts import ASSISTANT_INSTRUCTIONS, ASSISTANT_TOOLS
from utils.errors import UpstreamError

logger = logging.getLogger(__name__)


class AssistantService:
    """Owns the hosted assistant and the vector store its file search reads from"""

    def __init__(self, client: AsyncOpenAI, settings: Settings):
        self.client = client
        self.settings = settings
        self._assistant_id: Optional[str] = settings.assistant_id
        self._vector_store_id: Optional[str] = None

    @property
    def assistant_id(self) -> Optional[str]:
        return self._assistant_id

    async def ensure_assistant(self) -> str:
        """
        Return the configured assistant id, creating an assistant when none is configured

        Returns:
            The assistant id

        Raises:
            UpstreamError: If the assistant could not be created
        """
        if self._assistant_id:
            return self._assistant_id

        try:
            assistant = await self.client.beta.assistants.create(
                name="Resume Builder Assistant",
                instructions=ASSISTANT_INSTRUCTIONS,
                model=self.settings.model,
                tools=ASSISTANT_TOOLS,
            )
        except APIError as e:
            logger.error("Error setting up assistant: %s", e)
            raise UpstreamError(f"Failed to create assistant: {e}")

        logger.info("Created new assistant %s", assistant.id)
        logger.info("Add this assistant id to your environment as OPENAI_ASSISTANT_ID to reuse it")
        self._assistant_id = assistant.id
        return assistant.id

    async def get_or_create_vector_store(self) -> str:
        """
        Return the vector store attached to the assistant's file search tool

        A new store is created and attached when the assistant has none.

        Returns:
            The vector store id
        """
        if self._vector_store_id:
            return self._vector_store_id

        assistant_id = await self.ensure_assistant()

        try:
            assistant = await self.client.beta.assistants.retrieve(assistant_id)
            file_search = assistant.tool_resources.file_search if assistant.tool_resources else None
            if file_search and file_search.vector_store_ids:
                self._vector_store_id = file_search.vector_store_ids[0]
                return self._vector_store_id

            # Otherwise create a new store and attach it to the assistant
            vector_store = await self.client.vector_stores.create(name=self.settings.vector_store_name)
            await self.client.beta.assistants.update(
                assistant_id,
                tool_resources={"file_search": {"vector_store_ids": [vector_store.id]}},
            )
        except APIError as e:
            logger.error("Error in get_or_create_vector_store: %s", e)
            raise UpstreamError("Failed to get or create vector store")

        logger.info("Attached vector store %s to assistant %s", vector_store.id, assistant_id)
        self._vector_store_id = vector_store.id
        return vector_store.id
