from apmkit_core.facade.apm import Apm as Apm
