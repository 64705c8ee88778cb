from portfolio.agent.artifacts import FreeModel

# Priority order matters: the orchestrator always starts from the top.
FREE_MODELS: list[FreeModel] = [
    FreeModel(id="meta-llama/llama-3.2-3b-instruct:free", name="Llama 3.2 3B", provider="Meta", vision=True),
    FreeModel(id="qwen/qwen3-4b:free", name="Qwen3 4B", provider="Alibaba"),
    FreeModel(id="mistralai/mistral-small-3.1-24b-instruct:free", name="Mistral Small 3.1", provider="Mistral AI"),
    FreeModel(id="google/gemma-3-4b-it:free", name="Gemma 3 4B", provider="Google", no_system_role=True),
    FreeModel(id="meta-llama/llama-3.1-8b-instruct:free", name="Llama 3.1 8B", provider="Meta"),
    FreeModel(id="qwen/qwen3-8b:free", name="Qwen3 8B", provider="Alibaba"),
    FreeModel(id="deepseek/deepseek-r1-distill-llama-8b:free", name="DeepSeek R1 8B", provider="DeepSeek"),
    FreeModel(
        id="google/gemma-3-27b-it:free",
        name="Gemma 3 27B",
        provider="Google",
        no_system_role=True,
        vision=True,
    ),
]


def vision_first(models: list[FreeModel]) -> list[FreeModel]:
    """Vision-capable models in catalogue order, then everything else."""
    vision = [model for model in models if model.vision]
    rest = [model for model in models if not model.vision]
    return vision + rest
