"""Django settings for the server project.

Settings are split into components, one per concern, under
``server/settings/components``. Values that differ between environments
are read from the environment or ``config/.env`` via python-decouple.
"""

from server.settings.components.common import *  # noqa: F401,F403,WPS347
from server.settings.components.storages import *  # noqa: F401,F403,WPS347
from server.settings.components.uploads import *  # noqa: F401,F403,WPS347
