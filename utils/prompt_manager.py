import os
import logging
from jinja2 import Environment, FileSystemLoader, StrictUndefined

logger = logging.getLogger(__name__)

class PromptManager:
    def __init__(self, prompts_dir=None):
        if not prompts_dir:
            # Default to data/prompts relative to project root
            root_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
            prompts_dir = os.path.join(root_dir, 'data', 'prompts')

        self.prompts_dir = prompts_dir
        self.env = Environment(
            loader=FileSystemLoader(self.prompts_dir),
            undefined=StrictUndefined,
            trim_blocks=True,
            lstrip_blocks=True,
        )

    def load_prompt(self, filename, **kwargs):
        """
        Loads a Jinja2 template by filename and renders it with the provided kwargs.
        """
        try:
            template = self.env.get_template(filename)
            return template.render(**kwargs)
        except Exception as e:
            logger.error(f"Error rendering prompt {filename}: {e}")
            raise

prompt_manager = PromptManager()

def load_prompt(filename, **kwargs):
    """
    Convenience wrapper for the singleton instance.
    """
    return prompt_manager.load_prompt(filename, **kwargs)
