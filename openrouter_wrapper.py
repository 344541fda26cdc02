import json
import os
import aiohttp
from datetime import datetime
from typing import Optional, Union, List, Type, Tuple, Dict, Any, Literal
from pydantic import BaseModel

ReasoningEffort = Literal["minimal", "low", "medium", "high"]

OPENROUTER_URL = "https://openrouter.ai/api/v1/chat/completions"


def _log_llm_call(start_time: datetime, end_time: datetime, tokens_in: int, tokens_out: int, function_name: str, prompt_preview: str):
    """Log LLM call information to llm_log.txt"""
    duration = (end_time - start_time).total_seconds()
    log_line = f"{start_time.strftime('%Y-%m-%d %H:%M:%S')} | {function_name} | Duration: {duration:.2f}s | Tokens In: {tokens_in} | Tokens Out: {tokens_out} | Prompt: {prompt_preview}\n"

    with open("llm_log.txt", "a", encoding="utf-8") as f:
        f.write(log_line)


def _count_tokens_in_messages(messages: List[Dict[str, Any]]) -> int:
    """Rough token count estimation for input messages"""
    total_chars = 0
    for msg in messages:
        content = msg.get("content", "")
        if isinstance(content, str):
            total_chars += len(content)
        elif isinstance(content, list):
            for item in content:
                if isinstance(item, dict) and item.get("type") == "text":
                    total_chars += len(item.get("text", ""))
    # ~4 characters per token
    return total_chars // 4


def _get_api_key() -> str:
    api_key = os.getenv('OPENROUTER_API_KEY')
    if not api_key:
        raise ValueError("OPENROUTER_API_KEY environment variable not found")
    return api_key


def _build_messages(
    context: Optional[Union[str, List[Dict[str, Any]]]],
    text: str,
) -> List[Dict[str, Any]]:
    """Build message list for API request.

    Args:
        context: System message (string) or conversation history (list)
        text: User's text prompt

    Returns:
        List of message dicts ready for API
    """
    messages = []

    if context:
        if isinstance(context, str):
            messages.append({"role": "system", "content": context})
        elif isinstance(context, list):
            messages.extend(context)

    messages.append({"role": "user", "content": [{"type": "text", "text": text}]})
    return messages


def _build_payload(
    model: str,
    messages: List[Dict[str, Any]],
    reasoning_effort: Optional[ReasoningEffort],
    reasoning_exclude: bool,
    response_format: Optional[Type[BaseModel]],
    output_is_image: bool = False,
    safety_settings: Optional[List[Dict[str, str]]] = None,
) -> Dict[str, Any]:
    """Build API request payload.

    Args:
        model: Model identifier
        messages: Message list from _build_messages()
        reasoning_effort: Reasoning level or None
        reasoning_exclude: Whether to exclude reasoning from response
        response_format: Optional Pydantic model for structured output
        output_is_image: If True, request image output modalities
        safety_settings: Optional content-safety thresholds forwarded to the provider

    Returns:
        Payload dict ready for API request
    """
    payload = {"model": model, "messages": messages}

    if reasoning_effort is not None:
        payload["reasoning"] = {"effort": reasoning_effort, "exclude": reasoning_exclude}

    if response_format is not None:
        payload["response_format"] = {
            "type": "json_schema",
            "json_schema": {
                "name": response_format.__name__,
                "schema": response_format.model_json_schema()
            }
        }

    if output_is_image:
        payload["modalities"] = ["image", "text"]

    if safety_settings:
        payload["safety_settings"] = safety_settings

    return payload


def _extract_image_url(full_response: Dict[str, Any]) -> Optional[str]:
    """Extract image URL from API response.

    Handles multiple response formats:
    - {"images": [{"image_url": {"url": "data:image/..."}}]}
    - {"images": [{"image_url": "data:image/..."}]}
    - Content field with data URL

    Args:
        full_response: Full API response dict

    Returns:
        Image data URL string or None if not found
    """
    try:
        images = full_response.get('choices', [{}])[0].get('message', {}).get('images', [])
        if images:
            image_url_field = images[0].get('image_url')
            if isinstance(image_url_field, dict):
                return image_url_field.get('url')
            elif isinstance(image_url_field, str):
                return image_url_field
    except (KeyError, IndexError, TypeError, AttributeError):
        pass

    try:
        content = full_response['choices'][0]['message']['content']
        if content and isinstance(content, str) and content.startswith('data:image/'):
            return content
    except (KeyError, IndexError, TypeError):
        pass

    return None


def _parse_structured_response(
    message_content: Optional[str],
    response_format: Optional[Type[BaseModel]]
) -> Union[str, BaseModel, None]:
    """Parse structured output if requested.

    Args:
        message_content: Raw message content
        response_format: Optional Pydantic model class

    Returns:
        Parsed Pydantic model or original content if parsing fails
    """
    if response_format is not None and message_content and isinstance(message_content, str):
        try:
            return response_format.model_validate_json(message_content)
        except ValueError:
            pass  # pydantic.ValidationError and JSON errors are both ValueErrors
    return message_content


async def _post_chat_completion(payload: Dict[str, Any], timeout: Optional[float]) -> Dict[str, Any]:
    """POST a chat completion request and return the decoded JSON body."""
    api_key = _get_api_key()
    client_timeout = aiohttp.ClientTimeout(total=timeout)

    async with aiohttp.ClientSession(timeout=client_timeout) as session:
        async with session.post(
            OPENROUTER_URL,
            headers={
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            },
            data=json.dumps(payload),
        ) as response:
            try:
                return await response.json(content_type=None)
            except json.JSONDecodeError:
                response_text = await response.text()
                raise ValueError(
                    f"Non-JSON response from API. Status: {response.status}. Response text: {response_text[:200]}"
                )


async def llm_async(
    model: str,
    text: str,
    context: Optional[Union[str, List[Dict[str, Any]]]] = None,
    reasoning_effort: Optional[ReasoningEffort] = "medium",
    reasoning_exclude: bool = True,
    response_format: Optional[Type[BaseModel]] = None,
    logging: bool = True,
    timeout: Optional[float] = None,
    _caller: str = "async",
) -> Tuple[Union[str, BaseModel, None], dict, List[Dict[str, Any]]]:
    """
    Async OpenRouter API wrapper function. Issues exactly one request.

    Args:
        model: The model to use (e.g., "google/gemini-2.5-flash")
        text: The main text prompt
        context: Optional context/system message (string) or list of message history
        reasoning_effort: How much the model "thinks": "minimal" | "low" | "medium" | "high".
                          Use None to omit the 'reasoning' field entirely.
        reasoning_exclude: If True (default), request that intermediate reasoning not be returned.
        response_format: Optional Pydantic model class for structured output
        logging: If True (default), log call details to llm_log.txt
        timeout: Optional total request timeout in seconds

    Returns:
        Tuple of (message_content, full_response, message_history).
        message_content is a parsed response_format instance when parsing succeeds,
        otherwise the raw content string (or None when the response had no message).
    """
    start_time = datetime.now() if logging else None

    messages = _build_messages(context, text)
    payload = _build_payload(model, messages, reasoning_effort, reasoning_exclude, response_format)

    full_response = await _post_chat_completion(payload, timeout)

    try:
        message_content = full_response['choices'][0]['message']['content']
        assistant_message = full_response['choices'][0]['message']
    except (KeyError, IndexError, TypeError):
        message_content = None
        assistant_message = {"role": "assistant", "content": ""}

    message_content = _parse_structured_response(message_content, response_format)

    updated_messages = messages.copy()
    updated_messages.append(assistant_message)

    if logging and start_time:
        _log_response(start_time, full_response, messages, text, _caller)

    return message_content, full_response, updated_messages


async def generate_image_async(
    model: str,
    text: str,
    context: Optional[str] = None,
    safety_settings: Optional[List[Dict[str, str]]] = None,
    timeout: Optional[float] = None,
    logging: bool = True,
) -> Tuple[Optional[str], dict]:
    """
    Request a single image from an image-capable model.

    Args:
        model: Image model identifier (e.g., "google/gemini-2.5-flash-image-preview")
        text: Image prompt
        context: Optional system message
        safety_settings: Content-safety thresholds forwarded to the provider
        timeout: Optional total request timeout in seconds
        logging: If True (default), log call details to llm_log.txt

    Returns:
        Tuple of (image data URL or None when the model returned no image, full_response)
    """
    start_time = datetime.now() if logging else None

    messages = _build_messages(context, text)
    payload = _build_payload(
        model,
        messages,
        reasoning_effort=None,
        reasoning_exclude=True,
        response_format=None,
        output_is_image=True,
        safety_settings=safety_settings,
    )

    full_response = await _post_chat_completion(payload, timeout)
    image_url = _extract_image_url(full_response)

    if logging and start_time:
        _log_response(start_time, full_response, messages, text, "image")

    return image_url, full_response


def _log_response(start_time: datetime, full_response: Dict[str, Any], messages: List[Dict[str, Any]], text: str, caller: str) -> None:
    end_time = datetime.now()
    usage = full_response.get('usage') or {}
    tokens_in = usage.get('prompt_tokens') or _count_tokens_in_messages(messages)
    tokens_out = usage.get('completion_tokens', 0)
    prompt_preview = text[:20] + "..." if len(text) > 20 else text
    _log_llm_call(start_time, end_time, tokens_in, tokens_out, caller, prompt_preview)
