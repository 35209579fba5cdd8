# main.py

#============================================================#
#                         Strivio-PM                         #
#============================================================#
# Author      : Aktham Almomani                              #
# Created     : 2025-10-15                                   #
# Version     : V2.0.0                                       #
#------------------------------------------------------------#
# Purpose     : Bootstraps the Strivio core: logging setup   #
#               and table creation for the configured store. #
#============================================================#

import logging

import db
from config.logging_config import setup_logging

logger = logging.getLogger(__name__)


def main():
    setup_logging()
    db.init_db()
    logger.info("Strivio database ready at %s", db.engine.url)


if __name__ == "__main__":
    main()
